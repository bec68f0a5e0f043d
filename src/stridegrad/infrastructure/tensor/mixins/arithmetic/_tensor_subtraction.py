"""
Device-specific implementations of Tensor subtraction.

Registers CPU and CUDA control paths for `TensorMixinArithmetic.__sub__`.
The backward node routes ``g`` to the minuend and ``-g`` to the subtrahend.
"""

from typing import Union

from ..._tensor_builder import tensor_control_path_manager
from ....autograd._backward import SubtractBackward
from ....ops.elementwise_cpu import binary_cpu
from ....ops.elementwise_cuda import binary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinArithmetic as TMA

Number = Union[int, float]


@tensor_control_path_manager(TMA, TMA.__sub__, DeviceType.CUDA)
def tensor_sub_gpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    return self._binary_op(other, "subtract", binary_cuda, SubtractBackward)


@tensor_control_path_manager(TMA, TMA.__sub__, DeviceType.CPU)
def tensor_sub_cpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    return self._binary_op(other, "subtract", binary_cpu, SubtractBackward)
