"""
CPU batched matrix multiply kernel (NumPy backend).

Workers are laid out exactly like the CUDA launch: a 2-D tile over output
(column, row) replicated over the batch along the grid's z axis. Each worker
computes one dot product, reading both operands through their own strides
and accumulating over the shared dimension in increasing order. All workers
advance through the shared dimension together as one NumPy vector.
"""

from __future__ import annotations

from typing import Optional
import logging

import numpy as np

from ._launch import matmul_launch

logger = logging.getLogger(__name__)


def matmul_cpu(
    a: np.ndarray,
    b: np.ndarray,
    out: np.ndarray,
    plan,
    *,
    tile: Optional[int] = None,
) -> None:
    """
    Compute `out = a @ b` for every batch index.

    Parameters
    ----------
    a, b : np.ndarray
        Flat operand buffers.
    out : np.ndarray
        Flat row-major output buffer of `plan.shape`.
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

    gx, gy, _ = launch.grid
    bx, by, _ = launch.block
    rows = np.arange(gy * by, dtype=np.int64)
    cols = np.arange(gx * bx, dtype=np.int64)
    rows = rows[rows < H]
    cols = cols[cols < W]

    z, r, c = np.meshgrid(
        np.arange(plan.batch, dtype=np.int64), rows, cols, indexing="ij"
    )
    z, r, c = z.reshape(-1), r.reshape(-1), c.reshape(-1)

    off1 = np.asarray(plan.offsets1, dtype=np.int64)[z] + r * plan.row_stride1
    off2 = np.asarray(plan.offsets2, dtype=np.int64)[z] + c * plan.col_stride2

    acc = np.zeros(z.shape, dtype=out.dtype)
    for k in range(S):
        acc += a[off1 + k * plan.col_stride1] * b[off2 + k * plan.row_stride2]
    out[z * (H * W) + r * W + c] = acc
