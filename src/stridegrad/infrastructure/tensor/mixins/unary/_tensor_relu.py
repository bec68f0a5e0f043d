"""
Device-specific implementations of ``relu`` and its derivative.

- `relu` saves its input on a `ReluBackward` node so the backward pass can
  evaluate ``relu_d(x)``.
- `relu_d` is untracked: it is only ever needed as a gradient mask.

Both follow the kernel convention ``x > 0``, so ``relu_d(0) == 0``.
"""

from ..._tensor_builder import tensor_control_path_manager
from ....autograd._backward import ReluBackward
from ....ops.elementwise_cpu import unary_cpu
from ....ops.elementwise_cuda import unary_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinUnary as TMU


@tensor_control_path_manager(TMU, TMU.relu, DeviceType.CUDA)
def tensor_relu_gpu(self: ITensor) -> "ITensor":
    out = self._unary_op("relu", unary_cuda)
    return out._record(ReluBackward, (self,), (self,))


@tensor_control_path_manager(TMU, TMU.relu, DeviceType.CPU)
def tensor_relu_cpu(self: ITensor) -> "ITensor":
    out = self._unary_op("relu", unary_cpu)
    return out._record(ReluBackward, (self,), (self,))


@tensor_control_path_manager(TMU, TMU.relu_d, DeviceType.CUDA)
def tensor_relu_d_gpu(self: ITensor) -> "ITensor":
    return self._unary_op("relu_d", unary_cuda)


@tensor_control_path_manager(TMU, TMU.relu_d, DeviceType.CPU)
def tensor_relu_d_cpu(self: ITensor) -> "ITensor":
    return self._unary_op("relu_d", unary_cpu)
