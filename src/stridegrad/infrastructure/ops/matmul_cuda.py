"""
CUDA batched matrix multiply kernel (CuPy `RawKernel` backend).

A `tile x tile` block of threads covers a patch of output (column, row)
positions; `blockIdx.z` selects the batch entry. Batches larger than the
grid's z limit are launched in chunks, each chunk passing its first batch
index as `batch_offset`.
"""

from __future__ import annotations

from string import Template
from typing import Optional
import logging

import numpy as np

from . import _cuda_runtime
from ._launch import MAX_GRID_YZ, LaunchConfig, matmul_launch

logger = logging.getLogger(__name__)

_MATMUL_SOURCE = Template(
    r"""
typedef ${ctype} T;

extern "C" __global__
void ${name}(const T* a, const T* b, T* out,
             const long long* offsets1,
             const long long* offsets2,
             const long long height,
             const long long shared,
             const long long width,
             const long long row_stride1,
             const long long col_stride1,
             const long long row_stride2,
             const long long col_stride2,
             const long long batch_offset)
{
    long long col = (long long)blockIdx.x * blockDim.x + threadIdx.x;
    long long row = (long long)blockIdx.y * blockDim.y + threadIdx.y;
    long long z = batch_offset + blockIdx.z;
    if (row >= height || col >= width) return;

    const T* pa = a + offsets1[z] + row * row_stride1;
    const T* pb = b + offsets2[z] + col * col_stride2;

    T acc = (T)0;
    for (long long k = 0; k < shared; ++k) {
        acc += pa[k * col_stride1] * pb[k * row_stride2];
    }
    out[z * height * width + row * width + col] = acc;
}
"""
)


def _matmul_kernel(dtype: np.dtype):
    ctype = _cuda_runtime.ctype_for(dtype)
    name = f"stridegrad_matmul_{ctype}"
    return _cuda_runtime.get_kernel(_MATMUL_SOURCE.substitute(ctype=ctype, name=name), name)


def matmul_cuda(a, b, out, plan, *, tile: Optional[int] = None) -> None:
    """
    Compute `out = a @ b` on device for every batch index.

    Parameters
    ----------
    a, b, out : cupy.ndarray
        Flat device buffers; `out` is row-major of `plan.shape`.
    plan : MatmulPlan
        Dimensions, strides and per-batch base offsets.
    tile : int, optional
        Tile edge; defaults to the configured matmul tile.
    """
    H, S, W = plan.height, plan.shared, plan.width
    launch = matmul_launch(H, W, plan.batch, tile)
    logger.debug(
        "launch matmul grid=%s block=%s shape=%s shared=%d",
        launch.grid,
        launch.block,
        plan.shape,
        S,
    )
    if plan.batch == 0 or H == 0 or W == 0:
        return

    kernel = _matmul_kernel(out.dtype)
    offsets1 = _cuda_runtime.index_array(plan.offsets1)
    offsets2 = _cuda_runtime.index_array(plan.offsets2)
    gx, gy, _ = launch.grid

    for start in range(0, plan.batch, MAX_GRID_YZ):
        chunk = min(MAX_GRID_YZ, plan.batch - start)
        sub = LaunchConfig(grid=(gx, gy, chunk), block=launch.block)
        kernel(
            sub.grid,
            sub.block,
            (
                a,
                b,
                out,
                offsets1,
                offsets2,
                np.int64(H),
                np.int64(S),
                np.int64(W),
                np.int64(plan.row_stride1),
                np.int64(plan.col_stride1),
                np.int64(plan.row_stride2),
                np.int64(plan.col_stride2),
                np.int64(start),
            ),
        )
