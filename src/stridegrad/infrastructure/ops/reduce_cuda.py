"""
CUDA reduction kernels (CuPy `RawKernel` backend).

Mirrors `reduce_cpu`: the full sum runs on a single thread, and the
reduce-to-shape kernel assigns one thread per target element with a serial
inner loop.
"""

from __future__ import annotations

from string import Template
from typing import Optional, Sequence
import logging

import numpy as np

from . import _cuda_runtime
from ._launch import linear_launch, serial_launch

logger = logging.getLogger(__name__)

_SUM_SOURCE = Template(
    r"""
typedef ${ctype} T;

extern "C" __global__
void ${name}(const T* in, T* out,
             const long long* logical_strides,
             const long long* strides,
             const int rank,
             const long long n)
{
    if (blockIdx.x != 0 || threadIdx.x != 0) return;

    T acc = (T)0;
    for (long long i = 0; i < n; ++i) {
        long long rem = i;
        long long src = 0;
        for (int d = 0; d < rank; ++d) {
            long long st = logical_strides[d];
            if (st == 0) continue;
            long long k = rem / st;
            rem -= k * st;
            src += k * strides[d];
        }
        acc += in[src];
    }
    out[0] = acc;
}
"""
)

_REDUCE_TO_SHAPE_SOURCE = Template(
    r"""
typedef ${ctype} T;

extern "C" __global__
void ${name}(const T* in, T* out,
             const long long* out_strides,
             const long long* src_strides,
             const long long* inner_offsets,
             const int rank,
             const long long n_inner,
             const long long n)
{
    long long tid = (long long)blockIdx.x * blockDim.x + threadIdx.x;
    if (tid >= n) return;

    long long rem = tid;
    long long base = 0;
    for (int d = 0; d < rank; ++d) {
        long long st = out_strides[d];
        if (st == 0) continue;
        long long k = rem / st;
        rem -= k * st;
        base += k * src_strides[d];
    }

    T acc = (T)0;
    for (long long j = 0; j < n_inner; ++j) {
        acc += in[base + inner_offsets[j]];
    }
    out[tid] = acc;
}
"""
)


def _kernel(template: Template, op: str, dtype: np.dtype):
    ctype = _cuda_runtime.ctype_for(dtype)
    name = f"stridegrad_{op}_{ctype}"
    return _cuda_runtime.get_kernel(template.substitute(ctype=ctype, name=name), name)


def sum_cuda(
    x,
    out,
    shape: Sequence[int],
    strides: Sequence[int],
    logical_strides: Sequence[int],
) -> None:
    """Sum every element of a strided device tensor into `out[0]`."""
    launch = serial_launch()
    n = 1
    for d in shape:
        n *= int(d)
    logger.debug("launch sum grid=%s block=%s n=%d", launch.grid, launch.block, n)

    kernel = _kernel(_SUM_SOURCE, "sum", out.dtype)
    kernel(
        launch.grid,
        launch.block,
        (
            x,
            out,
            _cuda_runtime.index_array(logical_strides),
            _cuda_runtime.index_array(strides),
            np.int32(len(shape)),
            np.int64(n),
        ),
    )


def reduce_to_shape_cuda(
    x,
    out,
    plan,
    *,
    block_size: Optional[int] = None,
) -> None:
    """Sum a strided device tensor down to `plan.shape` (row-major output)."""
    n = plan.n_elements
    launch = linear_launch(n, block_size)
    logger.debug(
        "launch reduce_to_shape grid=%s block=%s n=%d inner=%d",
        launch.grid,
        launch.block,
        n,
        len(plan.inner_offsets),
    )
    if n == 0:
        return

    kernel = _kernel(_REDUCE_TO_SHAPE_SOURCE, "reduce_to_shape", out.dtype)
    kernel(
        launch.grid,
        launch.block,
        (
            x,
            out,
            _cuda_runtime.index_array(plan.out_strides),
            _cuda_runtime.index_array(plan.src_strides),
            _cuda_runtime.index_array(plan.inner_offsets),
            np.int32(len(plan.shape)),
            np.int64(len(plan.inner_offsets)),
            np.int64(n),
        ),
    )
