"""
CPU reduction kernels (NumPy backend).

- `sum_cpu`: full reduction performed by a single serial worker, visiting
  elements in logical row-major order.
- `reduce_to_shape_cpu`: one worker per target element; each worker walks the
  collapsed positions serially in row-major order. Used by autograd to bring
  a broadcast gradient back to an operand's shape.

Both accumulate in the element dtype with a fixed order, so they round
exactly like their CUDA counterparts.
"""

from __future__ import annotations

from typing import Optional, Sequence
import logging

import numpy as np

from ._launch import linear_launch, serial_launch
from .elementwise_cpu import active_workers, resolve_offsets

logger = logging.getLogger(__name__)


def sum_cpu(
    x: np.ndarray,
    out: np.ndarray,
    shape: Sequence[int],
    strides: Sequence[int],
    logical_strides: Sequence[int],
) -> None:
    """
    Sum every element of a strided tensor into `out[0]`.

    Parameters
    ----------
    x : np.ndarray
        Flat source buffer.
    out : np.ndarray
        Flat output buffer with at least one element.
    shape, strides : Sequence[int]
        Logical layout of the source.
    logical_strides : Sequence[int]
        Row-major strides of `shape`; defines the visiting order.
    """
    launch = serial_launch()
    n = 1
    for d in shape:
        n *= int(d)
    logger.debug("launch sum grid=%s block=%s n=%d", launch.grid, launch.block, n)

    flat = np.arange(n, dtype=np.int64)
    (src,) = resolve_offsets(flat, logical_strides, strides)
    # running total starts from zero and adds one element at a time
    seq = np.concatenate([np.zeros(1, dtype=x.dtype), x[src]])
    out[0] = np.add.accumulate(seq, dtype=x.dtype)[-1]


def reduce_to_shape_cpu(
    x: np.ndarray,
    out: np.ndarray,
    plan,
    *,
    block_size: Optional[int] = None,
) -> None:
    """
    Sum a strided tensor down to `plan.shape` (row-major output).

    Parameters
    ----------
    plan : ReductionPlan
        Target shape/strides, source strides and the offsets of every
        position collapsed into one target element.
    """
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

    tid = active_workers(launch, n)
    (base,) = resolve_offsets(tid, plan.out_strides, plan.src_strides)
    inner = np.asarray(plan.inner_offsets, dtype=np.int64)
    # row j holds the j-th collapsed position of every worker; each column
    # is summed serially from zero, down the rows
    gathered = x[inner[:, None] + base[None, :]]
    seq = np.concatenate([np.zeros((1, tid.size), dtype=x.dtype), gathered])
    out[tid] = np.add.accumulate(seq, axis=0, dtype=x.dtype)[-1]
