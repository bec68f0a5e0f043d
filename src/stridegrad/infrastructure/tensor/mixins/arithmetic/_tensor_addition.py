"""
Device-specific implementations of Tensor addition via control-path dispatch.

The public operator entrypoint is `TensorMixinArithmetic.__add__`; this
module registers one control path per device type. Both run the same
broadcasting forward pass (`Tensor._binary_op`) with their backend's kernel
and attach an `AddBackward` node when an operand tracks gradients.
"""

from typing import Union

from ..._tensor_builder import tensor_control_path_manager
from ....autograd._backward import AddBackward
from ....ops.elementwise_cpu import binary_cpu
from ....ops.elementwise_cuda import binary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinArithmetic as TMA

Number = Union[int, float]


@tensor_control_path_manager(TMA, TMA.__add__, DeviceType.CUDA)
def tensor_add_gpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    """CUDA control path for broadcasting addition."""
    return self._binary_op(other, "add", binary_cuda, AddBackward)


@tensor_control_path_manager(TMA, TMA.__add__, DeviceType.CPU)
def tensor_add_cpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    """
    CPU control path for broadcasting addition.

    Parameters
    ----------
    self : ITensor
        Left-hand operand tensor residing on the CPU.
    other : Union[ITensor, Number]
        Right-hand operand; scalars are lifted via `_as_tensor_like`.

    Returns
    -------
    ITensor
        A new CPU tensor holding the broadcast sum.
    """
    return self._binary_op(other, "add", binary_cpu, AddBackward)
