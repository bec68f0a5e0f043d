"""
Tensor control-path manager for device-specific dispatch.

This module defines the shared control-path manager used to register and
resolve device-specific implementations of Tensor methods.

Dispatch is keyed by the tensor's `_state`, which for `Tensor` is the
`DeviceType` of its device. Backend-specific implementations register
themselves like this:

    @tensor_control_path_manager(TensorMixin, TensorMixin.op, DeviceType.CPU)
    def op_cpu(self, ...): ...

    @tensor_control_path_manager(TensorMixin, TensorMixin.op, DeviceType.CUDA)
    def op_cuda(self, ...): ...

Calling ``Tensor.op(...)`` then runs the implementation whose registered
device type matches ``self.device.type``; every CUDA index shares one path.

Notes
-----
All control paths registered via this manager share a single internal
registry.
"""

from ...domain.utils._control_path import create_path_builder

# Control-path manager that dispatches Tensor methods based on `self._state`
tensor_control_path_manager = create_path_builder()
