"""
Unary operation mixin defining elementwise Tensor unary APIs.

This module declares :class:`TensorMixinUnary`: negation, ``relu`` and the
``relu`` derivative. Kernels are stride-aware, so every operation here works
on transposed views without materializing them first; the result is always
a fresh row-major tensor.
"""

from abc import ABC

from .....domain._tensor import ITensor


class TensorMixinUnary(ABC):
    """
    Abstract mixin defining unary tensor operations.

    Notes
    -----
    Backward rules described in method docstrings are contractual and must
    be respected by all concrete implementations.
    """

    def __neg__(self: ITensor) -> "ITensor":
        """
        Elementwise negation.

        Notes
        -----
        Backward rule:
            ``d(-x) / dx = -1``
        """
        ...

    def relu(self: ITensor) -> "ITensor":
        """
        Elementwise rectified linear unit, ``x if x > 0 else 0``.

        Notes
        -----
        Backward rule:
            ``d(relu(x)) / dx = relu_d(x)``
        """
        ...

    def relu_d(self: ITensor) -> "ITensor":
        """
        Elementwise derivative of ``relu``: 1 where ``x > 0``, else 0.

        This is a plain primitive used by the relu backward rule; its result
        never carries a backward node.
        """
        ...
