"""
Broadcasting elementwise arithmetic on tensors.

:class:`TensorMixinArithmetic` declares ``+ - * /`` and their reflected
forms. The forward operators are dispatched per device type (see
``_tensor_addition.py`` and siblings); the reflected forms only lift the
scalar and delegate, so they are implemented here once.

Broadcasting
------------
Both operands must have the same rank. On every axis the extents must be
equal, or one of them must be 1, in which case that operand's single slice
is reused along the axis. Anything else raises `ShapeMismatchError` before
device work is issued.
"""

from typing import Union
from abc import ABC

from .....domain._tensor import ITensor

Number = Union[int, float]


class TensorMixinArithmetic(ABC):
    """
    Elementwise ``+ - * /`` with broadcasting.

    Python scalars are lifted to tensors of shape ``(1,) * rank`` on the
    receiver's device and dtype. Both operands must share device and dtype.
    Gradients routed to an operand are summed back to that operand's shape.
    """

    def __add__(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
        """
        ``a + b``.

        Gradient: ``g`` to both operands.
        """
        ...

    def __sub__(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
        """
        ``a - b``.

        Gradient: ``g`` to ``a``, ``-g`` to ``b``.
        """
        ...

    def __mul__(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
        """
        ``a * b``; both operands are saved for the backward pass.

        Gradient: ``g * b`` to ``a``, ``g * a`` to ``b``.
        """
        ...

    def __truediv__(self: ITensor, other: Union["ITensor", Number]) -> "ITensor":
        """
        ``a / b`` with IEEE semantics (``x / 0`` is ``inf`` or ``nan``).

        Forward-only: the result never carries a backward node, and a
        `RuntimeWarning` is issued when an operand tracks gradients.
        """
        ...

    # reflected operators: ``scalar <op> tensor``

    def __radd__(self: ITensor, other: Number) -> "ITensor":
        return self._as_tensor_like(other, self).__add__(self)

    def __rsub__(self: ITensor, other: Number) -> "ITensor":
        return self._as_tensor_like(other, self).__sub__(self)

    def __rmul__(self: ITensor, other: Number) -> "ITensor":
        return self._as_tensor_like(other, self).__mul__(self)

    def __rtruediv__(self: ITensor, other: Number) -> "ITensor":
        return self._as_tensor_like(other, self).__truediv__(self)
