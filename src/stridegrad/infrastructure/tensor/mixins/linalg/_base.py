"""
Linear-algebra mixin declaring batched matrix multiplication.
"""

from abc import ABC

from .....domain._tensor import ITensor


class TensorMixinLinalg(ABC):
    """
    Abstract mixin defining matrix products for tensors.
    """

    def mm(self: ITensor, other: "ITensor") -> "ITensor":
        """
        Batched matrix multiplication ``(.., H, S) x (.., S, W) -> (.., H, W)``.

        Parameters
        ----------
        other : ITensor
            Right-hand operand with the same rank (at least 2) and the same
            leading batch dimensions.

        Returns
        -------
        ITensor
            Row-major tensor of shape ``(*batch, H, W)``.

        Raises
        ------
        ShapeMismatchError
            If the ranks differ, a rank is below 2, or batch dimensions differ.
        DimensionMismatchError
            If ``self.shape[-1] != other.shape[-2]``.

        Notes
        -----
        Operands are read through their strides, so transposed views are
        multiplied without a copy.

        Backward rule:
        - ``dA = g @ B^T``
        - ``dB = A^T @ g``
        """
        ...

    def __matmul__(self: ITensor, other: "ITensor") -> "ITensor":
        """Operator form of :meth:`mm`."""
        return self.mm(other)
