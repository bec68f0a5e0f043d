"""
CPU elementwise kernels (NumPy backend).

The CPU catalog mirrors the CUDA catalog worker for worker: a launch is a
grid of blocks of workers (see `_launch`), every worker owns exactly one
output element, resolves its flat index against the output's row-major
strides (divide and remainder per axis) and re-projects that multi-index
through each input's (effective) strides. Workers are evaluated together as
a NumPy vector instead of one OS thread each, which changes nothing about
the result because no two workers touch the same output.

Binary kernels
--------------
add, subtract, multiply, divide over a `BroadcastPlan`.

Unary kernels
-------------
copy, negate, relu, relu_d over an arbitrary input layout. Copy with zero
strides is how a tensor is broadcast-expanded into a larger shape.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence
import logging

import numpy as np

from ._launch import LaunchConfig, linear_launch

logger = logging.getLogger(__name__)


def _relu(x: np.ndarray) -> np.ndarray:
    return np.where(x > 0, x, np.zeros((), dtype=x.dtype))


def _relu_d(x: np.ndarray) -> np.ndarray:
    return np.where(x > 0, np.ones((), dtype=x.dtype), np.zeros((), dtype=x.dtype))


BINARY_OPS: Dict[str, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    "add": np.add,
    "subtract": np.subtract,
    "multiply": np.multiply,
    "divide": np.true_divide,
}

UNARY_OPS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "copy": lambda x: x,
    "negate": np.negative,
    "relu": _relu,
    "relu_d": _relu_d,
}


def active_workers(launch: LaunchConfig, n: int) -> np.ndarray:
    """
    Flat ids of the workers of a one-dimensional launch that own an element.

    Worker `b * block + t` of block `b` handles element `b * block + t`;
    ids at or beyond `n` are masked out.
    """
    tid = np.arange(launch.total_workers, dtype=np.int64)
    return tid[tid < int(n)]


def resolve_offsets(
    flat: np.ndarray, out_strides: Sequence[int], *in_strides: Sequence[int]
) -> list:
    """
    Map flat output indices to buffer offsets of each input.

    Parameters
    ----------
    flat : np.ndarray
        int64 flat indices into a row-major output.
    out_strides : Sequence[int]
        Row-major strides of the output.
    *in_strides : Sequence[int]
        One stride vector per input, same rank as the output.

    Returns
    -------
    list[np.ndarray]
        One int64 offset array per input.
    """
    rem = flat.copy()
    offsets = [np.zeros_like(flat) for _ in in_strides]
    for axis, st in enumerate(out_strides):
        st = int(st)
        if st == 0:
            continue
        k = rem // st
        rem -= k * st
        for off, strides in zip(offsets, in_strides):
            s = int(strides[axis])
            if s:
                off += k * s
    return offsets


def binary_cpu(
    op: str,
    a: np.ndarray,
    b: np.ndarray,
    out: np.ndarray,
    plan,
    *,
    block_size: Optional[int] = None,
) -> None:
    """
    Broadcasting binary kernel.

    Parameters
    ----------
    op : str
        One of "add", "subtract", "multiply", "divide".
    a, b : np.ndarray
        Flat operand buffers.
    out : np.ndarray
        Flat output buffer holding `plan.n_elements` row-major elements.
    plan : BroadcastPlan
        Output shape/strides and each operand's effective strides.
    block_size : int, optional
        Workers per block; defaults to the configured block size.
    """
    fn = BINARY_OPS[op]
    n = plan.n_elements
    launch = linear_launch(n, block_size)
    logger.debug("launch %s grid=%s block=%s n=%d", op, launch.grid, launch.block, n)
    if n == 0:
        return

    tid = active_workers(launch, n)
    off1, off2 = resolve_offsets(tid, plan.out_strides, plan.strides1, plan.strides2)
    # IEEE semantics (inf/nan) for division by zero, as on the device
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        out[tid] = fn(a[off1], b[off2])


def unary_cpu(
    op: str,
    x: np.ndarray,
    out: np.ndarray,
    shape: Sequence[int],
    in_strides: Sequence[int],
    out_strides: Sequence[int],
    *,
    block_size: Optional[int] = None,
) -> None:
    """
    Strided unary kernel writing a row-major output of `shape`.

    `in_strides` may contain zeros (broadcast expansion) or be permuted
    (transposed views).
    """
    fn = UNARY_OPS[op]
    n = 1
    for d in shape:
        n *= int(d)
    launch = linear_launch(n, block_size)
    logger.debug("launch %s grid=%s block=%s n=%d", op, launch.grid, launch.block, n)
    if n == 0:
        return

    tid = active_workers(launch, n)
    (src,) = resolve_offsets(tid, out_strides, in_strides)
    out[tid] = fn(x[src])
