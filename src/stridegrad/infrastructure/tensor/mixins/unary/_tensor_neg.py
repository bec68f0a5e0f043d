"""
Device-specific implementations of Tensor negation.

Registers CPU and CUDA control paths for `TensorMixinUnary.__neg__`. The
result carries a `NegateBackward` node when the input tracks gradients.
"""

from ..._tensor_builder import tensor_control_path_manager
from ....autograd._backward import NegateBackward
from ....ops.elementwise_cpu import unary_cpu
from ....ops.elementwise_cuda import unary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinUnary as TMU


@tensor_control_path_manager(TMU, TMU.__neg__, DeviceType.CUDA)
def tensor_neg_gpu(self: ITensor) -> "ITensor":
    out = self._unary_op("negate", unary_cuda)
    return out._record(NegateBackward, (self,))


@tensor_control_path_manager(TMU, TMU.__neg__, DeviceType.CPU)
def tensor_neg_cpu(self: ITensor) -> "ITensor":
    out = self._unary_op("negate", unary_cpu)
    return out._record(NegateBackward, (self,))
