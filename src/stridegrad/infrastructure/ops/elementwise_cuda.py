"""
CUDA elementwise kernels (CuPy `RawKernel` backend).

Same catalog and addressing as `elementwise_cpu`: one thread per output
element, flat index resolved against the output strides and re-projected
through each input's strides. Sources are specialized per element type and
compiled once through `_cuda_runtime.get_kernel`.
"""

from __future__ import annotations

from string import Template
from typing import Optional, Sequence
import logging

import numpy as np

from . import _cuda_runtime
from ._launch import linear_launch

logger = logging.getLogger(__name__)

_BINARY_EXPR = {
    "add": "x + y",
    "subtract": "x - y",
    "multiply": "x * y",
    "divide": "x / y",
}

_UNARY_EXPR = {
    "copy": "x",
    "negate": "-x",
    "relu": "x > (T)0 ? x : (T)0",
    "relu_d": "x > (T)0 ? (T)1 : (T)0",
}

_BINARY_SOURCE = Template(
    r"""
typedef ${ctype} T;

extern "C" __global__
void ${name}(const T* a, const T* b, T* out,
             const long long* out_strides,
             const long long* strides1,
             const long long* strides2,
             const int rank,
             const long long n)
{
    long long tid = (long long)blockIdx.x * blockDim.x + threadIdx.x;
    if (tid >= n) return;

    long long rem = tid;
    long long o1 = 0;
    long long o2 = 0;
    for (int i = 0; i < rank; ++i) {
        long long st = out_strides[i];
        if (st == 0) continue;
        long long k = rem / st;
        rem -= k * st;
        o1 += k * strides1[i];
        o2 += k * strides2[i];
    }

    T x = a[o1];
    T y = b[o2];
    out[tid] = ${expr};
}
"""
)

_UNARY_SOURCE = Template(
    r"""
typedef ${ctype} T;

extern "C" __global__
void ${name}(const T* in, T* out,
             const long long* out_strides,
             const long long* in_strides,
             const int rank,
             const long long n)
{
    long long tid = (long long)blockIdx.x * blockDim.x + threadIdx.x;
    if (tid >= n) return;

    long long rem = tid;
    long long src = 0;
    for (int i = 0; i < rank; ++i) {
        long long st = out_strides[i];
        if (st == 0) continue;
        long long k = rem / st;
        rem -= k * st;
        src += k * in_strides[i];
    }

    T x = in[src];
    out[tid] = ${expr};
}
"""
)


def _binary_kernel(op: str, dtype: np.dtype):
    ctype = _cuda_runtime.ctype_for(dtype)
    name = f"stridegrad_{op}_{ctype}"
    src = _BINARY_SOURCE.substitute(ctype=ctype, name=name, expr=_BINARY_EXPR[op])
    return _cuda_runtime.get_kernel(src, name)


def _unary_kernel(op: str, dtype: np.dtype):
    ctype = _cuda_runtime.ctype_for(dtype)
    name = f"stridegrad_{op}_{ctype}"
    src = _UNARY_SOURCE.substitute(ctype=ctype, name=name, expr=_UNARY_EXPR[op])
    return _cuda_runtime.get_kernel(src, name)


def binary_cuda(
    op: str,
    a,
    b,
    out,
    plan,
    *,
    block_size: Optional[int] = None,
) -> None:
    """
    Broadcasting binary kernel on device arrays.

    Parameters
    ----------
    op : str
        One of "add", "subtract", "multiply", "divide".
    a, b, out : cupy.ndarray
        Flat device buffers of a single dtype.
    plan : BroadcastPlan
        Output shape/strides and each operand's effective strides.
    block_size : int, optional
        Threads per block; defaults to the configured block size.
    """
    if op not in _BINARY_EXPR:
        raise KeyError(op)
    n = plan.n_elements
    launch = linear_launch(n, block_size)
    logger.debug("launch %s grid=%s block=%s n=%d", op, launch.grid, launch.block, n)
    if n == 0:
        return

    kernel = _binary_kernel(op, out.dtype)
    kernel(
        launch.grid,
        launch.block,
        (
            a,
            b,
            out,
            _cuda_runtime.index_array(plan.out_strides),
            _cuda_runtime.index_array(plan.strides1),
            _cuda_runtime.index_array(plan.strides2),
            np.int32(plan.rank),
            np.int64(n),
        ),
    )


def unary_cuda(
    op: str,
    x,
    out,
    shape: Sequence[int],
    in_strides: Sequence[int],
    out_strides: Sequence[int],
    *,
    block_size: Optional[int] = None,
) -> None:
    """Strided unary kernel writing a row-major device output of `shape`."""
    if op not in _UNARY_EXPR:
        raise KeyError(op)
    n = 1
    for d in shape:
        n *= int(d)
    launch = linear_launch(n, block_size)
    logger.debug("launch %s grid=%s block=%s n=%d", op, launch.grid, launch.block, n)
    if n == 0:
        return

    kernel = _unary_kernel(op, out.dtype)
    kernel(
        launch.grid,
        launch.block,
        (
            x,
            out,
            _cuda_runtime.index_array(out_strides),
            _cuda_runtime.index_array(in_strides),
            np.int32(len(shape)),
            np.int64(n),
        ),
    )
