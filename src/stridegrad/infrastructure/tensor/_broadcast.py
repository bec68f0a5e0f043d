"""
Broadcast planning for binary elementwise kernels.

`prepare_broadcast` turns two equal-rank operand layouts into a
`BroadcastPlan`: the output shape, the output's row-major strides (used by
each worker to decompose its flat index) and one *effective* stride vector
per operand. An effective stride is the operand's real stride, or 0 on an
axis where that operand has extent 1 and the other operand is larger, so the
operand's single slice is replayed for every output index on that axis.

`expand_strides` and `reduction_plan` are the single-operand counterparts
used by autograd: expanding a gradient to a larger shape and reducing a
gradient back down to an operand's shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ...domain._errors import ShapeMismatchError
from ._layout import numel, row_major_strides


@dataclass(frozen=True)
class BroadcastPlan:
    """
    Addressing plan for one broadcasting binary kernel launch.

    Attributes
    ----------
    shape : tuple[int, ...]
        Output shape (per-axis maximum of the operand extents).
    out_strides : tuple[int, ...]
        Row-major strides of the freshly allocated output.
    strides1, strides2 : tuple[int, ...]
        Effective strides of each operand (0 on broadcast axes).
    """

    shape: tuple[int, ...]
    out_strides: tuple[int, ...]
    strides1: tuple[int, ...]
    strides2: tuple[int, ...]

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def n_elements(self) -> int:
        return numel(self.shape)


def prepare_broadcast(
    shape1: Sequence[int],
    strides1: Sequence[int],
    shape2: Sequence[int],
    strides2: Sequence[int],
    *,
    op: str = "broadcast",
) -> BroadcastPlan:
    """
    Build the broadcast plan for two operands.

    Per axis:
    - equal extents keep both real strides (even if one is already 0),
    - otherwise the larger extent wins and the side with extent 1 gets
      stride 0.

    Raises
    ------
    ShapeMismatchError
        If the ranks differ, or an axis has two different extents neither of
        which is 1.
    """
    s1 = tuple(int(d) for d in shape1)
    s2 = tuple(int(d) for d in shape2)
    if len(s1) != len(s2):
        raise ShapeMismatchError(op, s1, s2, "ranks differ")

    shape: list[int] = []
    eff1: list[int] = []
    eff2: list[int] = []
    for axis, (d1, d2) in enumerate(zip(s1, s2)):
        if d1 == d2:
            shape.append(d1)
            eff1.append(int(strides1[axis]))
            eff2.append(int(strides2[axis]))
        elif d2 == 1:
            shape.append(d1)
            eff1.append(int(strides1[axis]))
            eff2.append(0)
        elif d1 == 1:
            shape.append(d2)
            eff1.append(0)
            eff2.append(int(strides2[axis]))
        else:
            raise ShapeMismatchError(
                op, s1, s2, f"axis {axis}: extents {d1} and {d2} are not broadcastable"
            )

    out_shape = tuple(shape)
    return BroadcastPlan(
        shape=out_shape,
        out_strides=row_major_strides(out_shape),
        strides1=tuple(eff1),
        strides2=tuple(eff2),
    )


def expand_strides(
    shape: Sequence[int], strides: Sequence[int], target: Sequence[int]
) -> tuple[int, ...]:
    """
    Effective strides that read a tensor of `shape` as if it had `target` shape.

    Raises
    ------
    ShapeMismatchError
        If `shape` cannot be broadcast to `target`.
    """
    src = tuple(int(d) for d in shape)
    tgt = tuple(int(d) for d in target)
    if len(src) != len(tgt):
        raise ShapeMismatchError("expand", src, tgt, "ranks differ")
    out = []
    for axis, (d, t) in enumerate(zip(src, tgt)):
        if d == t:
            out.append(int(strides[axis]))
        elif d == 1:
            out.append(0)
        else:
            raise ShapeMismatchError(
                "expand", src, tgt, f"axis {axis}: cannot expand {d} to {t}"
            )
    return tuple(out)


@dataclass(frozen=True)
class ReductionPlan:
    """
    Addressing plan for reducing a tensor onto a smaller, broadcast-compatible
    shape.

    Attributes
    ----------
    shape : tuple[int, ...]
        Target shape (same rank; each axis equal to the source or 1).
    out_strides : tuple[int, ...]
        Row-major strides of the target.
    src_strides : tuple[int, ...]
        Strides of the source tensor.
    inner_offsets : tuple[int, ...]
        Source offsets of every position collapsed into one target element,
        in row-major order of the reduced axes. Each worker walks this list
        serially.
    """

    shape: tuple[int, ...]
    out_strides: tuple[int, ...]
    src_strides: tuple[int, ...]
    inner_offsets: tuple[int, ...]

    @property
    def n_elements(self) -> int:
        return numel(self.shape)


def reduction_plan(
    src_shape: Sequence[int], src_strides: Sequence[int], target: Sequence[int]
) -> ReductionPlan:
    """
    Build the plan that sums a `src_shape` tensor down to `target`.

    Raises
    ------
    ShapeMismatchError
        If the ranks differ, or a target axis is neither equal to the source
        extent nor 1.
    """
    src = tuple(int(d) for d in src_shape)
    tgt = tuple(int(d) for d in target)
    if len(src) != len(tgt):
        raise ShapeMismatchError("reduce_to_shape", src, tgt, "ranks differ")

    reduced_extents: list[int] = []
    for axis, (d, t) in enumerate(zip(src, tgt)):
        if t == d:
            reduced_extents.append(1)
        elif t == 1:
            reduced_extents.append(d)
        else:
            raise ShapeMismatchError(
                "reduce_to_shape", src, tgt, f"axis {axis}: cannot reduce {d} to {t}"
            )

    strides = tuple(int(s) for s in src_strides)
    # column j holds the j-th collapsed multi-index, row-major
    positions = np.indices(reduced_extents, dtype=np.int64).reshape(
        len(reduced_extents), numel(reduced_extents)
    )
    inner_offsets = np.asarray(strides, dtype=np.int64) @ positions

    return ReductionPlan(
        shape=tgt,
        out_strides=row_major_strides(tgt),
        src_strides=strides,
        inner_offsets=tuple(inner_offsets.tolist()),
    )
