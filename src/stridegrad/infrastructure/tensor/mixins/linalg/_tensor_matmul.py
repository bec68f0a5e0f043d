"""
Device-specific implementations of batched matrix multiplication.

Registers CPU and CUDA control paths for `TensorMixinLinalg.mm`. Shapes are
validated by `prepare_matmul` before the output is allocated. Both operands
are saved on the `MatrixMultiplyBackward` node.
"""

from ..._tensor_builder import tensor_control_path_manager
from ..._matmul_plan import prepare_matmul
from ....autograd._backward import MatrixMultiplyBackward
from ....ops.matmul_cpu import matmul_cpu
from ....ops.matmul_cuda import matmul_cuda

from .....domain.device._device import DeviceType
from .....domain._tensor import ITensor

from ._base import TensorMixinLinalg as TML


def _mm(self: ITensor, other: "ITensor", kernel) -> "ITensor":
    if not isinstance(other, type(self)):
        raise TypeError(f"mm expects a Tensor operand, got {type(other)!r}")
    self._check_same_placement(other)
    plan = prepare_matmul(self.shape, self.strides, other.shape, other.strides)

    out = type(self)(plan.shape, self.device, dtype=self.dtype)
    with self._device_scope():
        kernel(self.data.handle, other.data.handle, out.data.handle, plan)
    return out._record(MatrixMultiplyBackward, (self, other), (self, other))


@tensor_control_path_manager(TML, TML.mm, DeviceType.CUDA)
def tensor_mm_gpu(self: ITensor, other: "ITensor") -> "ITensor":
    """CUDA control path: tiled kernel, batches chunked to the grid limit."""
    return _mm(self, other, matmul_cuda)


@tensor_control_path_manager(TML, TML.mm, DeviceType.CPU)
def tensor_mm_cpu(self: ITensor, other: "ITensor") -> "ITensor":
    """CPU control path: the same tiled worker grid evaluated with NumPy."""
    return _mm(self, other, matmul_cpu)
