"""
Device-specific implementations of Tensor true division.

Division is forward-only: no backward node is attached, so gradients do not
flow through a quotient. `Tensor._binary_op` warns when an operand tracks
gradients.
"""

from typing import Union

from ..._tensor_builder import tensor_control_path_manager
from ....ops.elementwise_cpu import binary_cpu
from ....ops.elementwise_cuda import binary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinArithmetic as TMA

Number = Union[int, float]


@tensor_control_path_manager(TMA, TMA.__truediv__, DeviceType.CUDA)
def tensor_div_gpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    return self._binary_op(other, "divide", binary_cuda, None)


@tensor_control_path_manager(TMA, TMA.__truediv__, DeviceType.CPU)
def tensor_div_cpu(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
    return self._binary_op(other, "divide", binary_cpu, None)
