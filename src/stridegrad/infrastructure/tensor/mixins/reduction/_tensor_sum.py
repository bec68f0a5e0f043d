"""
Device-specific implementations of the full ``sum`` reduction.

A single serial worker visits the elements in logical row-major order, so
the floating point result is the same for every launch configuration and on
both backends. Works on views (the worker reads through the strides).
"""

from ..._tensor_builder import tensor_control_path_manager
from ..._layout import row_major_strides
from ....autograd._backward import SumBackward
from ....ops.reduce_cpu import sum_cpu
from ....ops.reduce_cuda import sum_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinReduction as TMR


def _sum(self: ITensor, kernel) -> "ITensor":
    Tensor = type(self)
    out = Tensor((1,) * self.rank, self.device, dtype=self.dtype)
    with self._device_scope():
        kernel(
            self.data.handle,
            out.data.handle,
            self.shape,
            self.strides,
            row_major_strides(self.shape),
        )
    return out._record(SumBackward, (self,), (self,))


@tensor_control_path_manager(TMR, TMR.sum, DeviceType.CUDA)
def tensor_sum_gpu(self: ITensor) -> "ITensor":
    return _sum(self, sum_cuda)


@tensor_control_path_manager(TMR, TMR.sum, DeviceType.CPU)
def tensor_sum_cpu(self: ITensor) -> "ITensor":
    """
    CPU control path for the full sum.

    Returns
    -------
    ITensor
        A ``(1,) * rank`` CPU tensor holding the total.
    """
    return _sum(self, sum_cpu)
