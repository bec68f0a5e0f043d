"""
Kernel catalog.

Each operation exists twice with the same signature and the same worker
decomposition: a NumPy implementation (`*_cpu`) and a CuPy `RawKernel`
implementation (`*_cuda`). Tensor control paths pick one per device type.
"""

from .elementwise_cpu import binary_cpu, unary_cpu
from .elementwise_cuda import binary_cuda, unary_cuda
from .reduce_cpu import sum_cpu, reduce_to_shape_cpu
from .reduce_cuda import sum_cuda, reduce_to_shape_cuda
from .matmul_cpu import matmul_cpu
from .matmul_cuda import matmul_cuda

__all__ = [
    binary_cpu.__name__,
    unary_cpu.__name__,
    binary_cuda.__name__,
    unary_cuda.__name__,
    sum_cpu.__name__,
    reduce_to_shape_cpu.__name__,
    sum_cuda.__name__,
    reduce_to_shape_cuda.__name__,
    matmul_cpu.__name__,
    matmul_cuda.__name__,
]
