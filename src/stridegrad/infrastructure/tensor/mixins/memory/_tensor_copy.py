"""
Device-specific copy and broadcast-expansion via the strided copy kernel.

`_broadcast_to` reads the source through effective strides that are 0 on
expanded axes, so one copy launch replicates the source across the target
shape. Results are never tracked; both are used inside gradient routing.
"""

from typing import Sequence

from ..._tensor_builder import tensor_control_path_manager
from ..._broadcast import expand_strides
from ....ops.elementwise_cpu import unary_cpu
from ....ops.elementwise_cuda import unary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinMemory as TMM


def _broadcast_to(self: ITensor, shape: Sequence[int], kernel) -> "ITensor":
    target = tuple(int(d) for d in shape)
    if target == self.shape:
        return self
    strides = expand_strides(self.shape, self.strides, target)
    return self._unary_op("copy", kernel, shape=target, in_strides=strides)


@tensor_control_path_manager(TMM, TMM._clone, DeviceType.CUDA)
def tensor_clone_gpu(self: ITensor) -> "ITensor":
    return self._unary_op("copy", unary_cuda)


@tensor_control_path_manager(TMM, TMM._clone, DeviceType.CPU)
def tensor_clone_cpu(self: ITensor) -> "ITensor":
    return self._unary_op("copy", unary_cpu)


@tensor_control_path_manager(TMM, TMM._broadcast_to, DeviceType.CUDA)
def tensor_broadcast_to_gpu(self: ITensor, shape: Sequence[int]) -> "ITensor":
    return _broadcast_to(self, shape, unary_cuda)


@tensor_control_path_manager(TMM, TMM._broadcast_to, DeviceType.CPU)
def tensor_broadcast_to_cpu(self: ITensor, shape: Sequence[int]) -> "ITensor":
    return _broadcast_to(self, shape, unary_cpu)
