"""
Text rendering of tensors.

The layout is fixed and consumed by humans and tests alike::

    [[1, 2, 3, ][4, 5, 6, ]]
    shape = (2, 3, ), rank = 2, strides = (3, 1, ), n_elements = 6, size = 24,

Values are visited in logical row-major order (transposed views print their
logical contents) and formatted like `%g`. Every opening bracket run is
emitted when an index advances, every closing bracket when an index wraps.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def _fmt(v: float) -> str:
    return f"{float(v):g}"


def render_values(values: np.ndarray, shape: Sequence[int]) -> str:
    """
    Render the nested-bracket value line (without the trailing newline).

    Parameters
    ----------
    values : np.ndarray
        Logical contents flattened in row-major order.
    shape : Sequence[int]
        Logical shape.
    """
    rank = len(shape)
    indices = [0] * rank
    parts = ["[" * rank]
    for v in values.reshape(-1):
        parts.append(_fmt(v))
        parts.append(", ")
        for j in range(rank - 1, -1, -1):
            if indices[j] < int(shape[j]) - 1:
                parts.append("[" * (rank - 1 - j))
                indices[j] += 1
                break
            parts.append("]")
            indices[j] = 0
    return "".join(parts)


def render_metadata(
    shape: Sequence[int], strides: Sequence[int], n_elements: int, size: int
) -> str:
    """Render the metadata line (without the trailing newline)."""
    shape_s = "".join(f"{d}, " for d in shape)
    strides_s = "".join(f"{s}, " for s in strides)
    return (
        f"shape = ({shape_s}), "
        f"rank = {len(shape)}, "
        f"strides = ({strides_s}), "
        f"n_elements = {n_elements}, "
        f"size = {size}, "
    )


def render(tensor) -> str:
    """Full two-line rendering of `tensor`, each line newline-terminated."""
    values = tensor.to_numpy()
    return (
        render_values(values, tensor.shape)
        + "\n"
        + render_metadata(tensor.shape, tensor.strides, tensor.n_elements, tensor.size)
        + "\n"
    )
