"""
Shape/stride arithmetic for strided tensors.

Pure host-side helpers shared by the tensor core, the broadcast planner and
the kernel launchers:

- `normalize_shape`: validate a user-provided shape
- `row_major_strides`: canonical strides for a freshly allocated tensor
- `numel`: element count of a shape
- `flat_offset`: buffer offset of a multi-index (inner product with strides)
- `normalize_dim`: Python-style dimension index normalization
- `transposed`: swap two axes of (shape, strides) without touching data

Strides are counted in elements, not bytes.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Union

from ...domain._errors import IndexOutOfRangeError


def normalize_shape(shape: Union[int, Iterable[int]]) -> tuple[int, ...]:
    """
    Validate and normalize a shape into a tuple of non-negative ints.

    A bare integer is accepted as a rank-1 shape.

    Raises
    ------
    ValueError
        If any dimension is negative.
    TypeError
        If any dimension is not an integer.
    """
    if isinstance(shape, int) and not isinstance(shape, bool):
        shape = (shape,)
    out = []
    for d in tuple(shape):
        if isinstance(d, bool) or not hasattr(d, "__index__"):
            raise TypeError(f"shape entries must be integers, got {d!r}")
        d = int(d.__index__())
        if d < 0:
            raise ValueError(f"shape entries must be non-negative, got {tuple(shape)}")
        out.append(d)
    return tuple(out)


def numel(shape: Sequence[int]) -> int:
    """Return the product of all dimensions (1 for rank 0)."""
    n = 1
    for d in shape:
        n *= int(d)
    return n


def row_major_strides(shape: Sequence[int]) -> tuple[int, ...]:
    """
    Compute canonical row-major strides for `shape` in O(rank).

    The rightmost stride is 1 and each stride to the left is the previous
    stride times the previous dimension size, e.g. (2, 3, 4) -> (12, 4, 1).
    """
    strides = [0] * len(shape)
    stride = 1
    for i in range(len(shape) - 1, -1, -1):
        strides[i] = stride
        stride *= int(shape[i])
    return tuple(strides)


def flat_offset(strides: Sequence[int], indices: Sequence[int]) -> int:
    """Return `sum(strides[i] * indices[i])`."""
    return sum(int(s) * int(i) for s, i in zip(strides, indices))


def check_indices(indices: Sequence[int], shape: Sequence[int]) -> tuple[int, ...]:
    """
    Validate a full multi-index against `shape`.

    Negative indices are not wrapped: every entry must lie in
    `[0, shape[i])`.

    Raises
    ------
    IndexOutOfRangeError
        If the index length differs from the rank or any entry is out of range.
    """
    idx = tuple(indices)
    if len(idx) != len(shape):
        raise IndexOutOfRangeError(
            idx, shape, f"expected {len(shape)} indices, got {len(idx)}"
        )
    out = []
    for i, (k, d) in enumerate(zip(idx, shape)):
        if isinstance(k, bool) or not hasattr(k, "__index__"):
            raise TypeError(f"indices must be integers, got {k!r} at axis {i}")
        k = int(k.__index__())
        if not 0 <= k < int(d):
            raise IndexOutOfRangeError(idx, shape, f"axis {i} has extent {d}")
        out.append(k)
    return tuple(out)


def normalize_dim(dim: int, rank: int) -> int:
    """
    Map a possibly negative dimension index into `[0, rank)`.

    Raises
    ------
    IndexOutOfRangeError
        If `dim` is outside `[-rank, rank)`.
    """
    d = int(dim)
    if d < 0:
        d += rank
    if not 0 <= d < rank:
        raise IndexOutOfRangeError((dim,), (rank,), "dimension index out of range")
    return d


def transposed(
    shape: Sequence[int], strides: Sequence[int], dim1: int, dim2: int
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """
    Swap two axes of a (shape, strides) pair.

    Returns
    -------
    (tuple[int, ...], tuple[int, ...])
        New shape and strides; the data layout is untouched, so the result
        describes a view over the same buffer.
    """
    rank = len(shape)
    d1 = normalize_dim(dim1, rank)
    d2 = normalize_dim(dim2, rank)
    new_shape = list(shape)
    new_strides = list(strides)
    new_shape[d1], new_shape[d2] = new_shape[d2], new_shape[d1]
    new_strides[d1], new_strides[d2] = new_strides[d2], new_strides[d1]
    return tuple(new_shape), tuple(new_strides)


def is_row_major(shape: Sequence[int], strides: Sequence[int]) -> bool:
    """Return True if `strides` are the canonical row-major strides of `shape`."""
    return tuple(strides) == row_major_strides(shape)
