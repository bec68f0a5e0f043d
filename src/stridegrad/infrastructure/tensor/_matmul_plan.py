"""
Validation and addressing for batched matrix multiplication.

`prepare_matmul` checks two operand layouts and returns a `MatmulPlan`:
the output shape `(*batch, H, W)`, the row/column strides of each operand
and, per flattened batch index, the base offset of each operand's matrix.
Base offsets are derived from each operand's own batch strides, so
transposed batch axes need no copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Sequence

from ...domain._errors import DimensionMismatchError, ShapeMismatchError
from ._layout import flat_offset, numel


@dataclass(frozen=True)
class MatmulPlan:
    batch_shape: tuple[int, ...]
    height: int
    shared: int
    width: int
    offsets1: tuple[int, ...]
    offsets2: tuple[int, ...]
    row_stride1: int
    col_stride1: int
    row_stride2: int
    col_stride2: int

    @property
    def shape(self) -> tuple[int, ...]:
        return self.batch_shape + (self.height, self.width)

    @property
    def batch(self) -> int:
        return numel(self.batch_shape)


def prepare_matmul(
    shape1: Sequence[int],
    strides1: Sequence[int],
    shape2: Sequence[int],
    strides2: Sequence[int],
    *,
    op: str = "mm",
) -> MatmulPlan:
    """
    Build the plan for `(.., H, S) x (.., S, W) -> (.., H, W)`.

    Raises
    ------
    ShapeMismatchError
        If the ranks differ, either rank is below 2, or the batch dimensions
        differ.
    DimensionMismatchError
        If `shape1[-1] != shape2[-2]`.
    """
    s1 = tuple(int(d) for d in shape1)
    s2 = tuple(int(d) for d in shape2)
    if len(s1) < 2 or len(s2) < 2:
        raise ShapeMismatchError(op, s1, s2, "operands must have rank >= 2")
    if len(s1) != len(s2):
        raise ShapeMismatchError(op, s1, s2, "ranks differ")
    if s1[:-2] != s2[:-2]:
        raise ShapeMismatchError(op, s1, s2, "batch dimensions differ")
    if s1[-1] != s2[-2]:
        raise DimensionMismatchError(op, s1, s2)

    batch_shape = s1[:-2]
    bstr1 = tuple(strides1[:-2])
    bstr2 = tuple(strides2[:-2])
    offsets1 = []
    offsets2 = []
    for idx in product(*(range(d) for d in batch_shape)):
        offsets1.append(flat_offset(bstr1, idx))
        offsets2.append(flat_offset(bstr2, idx))

    return MatmulPlan(
        batch_shape=batch_shape,
        height=s1[-2],
        shared=s1[-1],
        width=s2[-1],
        offsets1=tuple(offsets1),
        offsets2=tuple(offsets2),
        row_stride1=int(strides1[-2]),
        col_stride1=int(strides1[-1]),
        row_stride2=int(strides2[-2]),
        col_stride2=int(strides2[-1]),
    )
