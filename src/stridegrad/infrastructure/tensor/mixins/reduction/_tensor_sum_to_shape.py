"""
Device-specific implementations of `Tensor._sum_to_shape`.

Used by the backward graph to bring a gradient computed in a broadcast
output shape back to the shape of the operand it is routed to. One worker
per target element walks the collapsed positions serially.
"""

from typing import Sequence

from ..._tensor_builder import tensor_control_path_manager
from ..._broadcast import reduction_plan
from ....ops.reduce_cpu import reduce_to_shape_cpu
from ....ops.reduce_cuda import reduce_to_shape_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinReduction as TMR


def _sum_to_shape(self: ITensor, shape: Sequence[int], kernel) -> "ITensor":
    target = tuple(int(d) for d in shape)
    if target == self.shape:
        return self
    plan = reduction_plan(self.shape, self.strides, target)
    out = type(self)(plan.shape, self.device, dtype=self.dtype)
    with self._device_scope():
        kernel(self.data.handle, out.data.handle, plan)
    return out


@tensor_control_path_manager(TMR, TMR._sum_to_shape, DeviceType.CUDA)
def tensor_sum_to_shape_gpu(self: ITensor, shape: Sequence[int]) -> "ITensor":
    return _sum_to_shape(self, shape, reduce_to_shape_cuda)


@tensor_control_path_manager(TMR, TMR._sum_to_shape, DeviceType.CPU)
def tensor_sum_to_shape_cpu(self: ITensor, shape: Sequence[int]) -> "ITensor":
    return _sum_to_shape(self, shape, reduce_to_shape_cpu)
