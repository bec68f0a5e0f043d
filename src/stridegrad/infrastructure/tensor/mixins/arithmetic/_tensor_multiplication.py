"""
Device-specific implementations of Tensor multiplication.

Registers CPU and CUDA control paths for `TensorMixinArithmetic.__mul__`.
Both operands are saved on the `MultiplyBackward` node because each one's
gradient is the upstream gradient times the other operand.
"""

from typing import Union

from ..._tensor_builder import tensor_control_path_manager
from ....autograd._backward import MultiplyBackward
from ....ops.elementwise_cpu import binary_cpu
from ....ops.elementwise_cuda import binary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinArithmetic as TMA

Number = Union[int, float]


@tensor_control_path_manager(TMA, TMA.__mul__, DeviceType.CUDA)
def tensor_mul_gpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    """CUDA control path for broadcasting multiplication."""
    return self._binary_op(
        other, "multiply", binary_cuda, MultiplyBackward, save_inputs=True
    )


@tensor_control_path_manager(TMA, TMA.__mul__, DeviceType.CPU)
def tensor_mul_cpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    """CPU control path for broadcasting multiplication."""
    return self._binary_op(
        other, "multiply", binary_cpu, MultiplyBackward, save_inputs=True
    )
