"""
Memory/layout mixin: views, copies and broadcast expansion.

- ``transpose`` is a metadata-only view over the same device buffer and is
  therefore implemented here directly, identically for every device.
- ``_clone`` and ``_broadcast_to`` materialize data with the strided copy
  kernel and are dispatched per device type.
"""

from typing import Sequence
from abc import ABC

from .....domain._tensor import ITensor
from ..._layout import normalize_dim, transposed
from ....autograd._backward import TransposeBackward


class TensorMixinMemory(ABC):
    """
    Abstract mixin defining layout operations for tensors.
    """

    def transpose(self: ITensor, dim1: int, dim2: int) -> "ITensor":
        """
        Swap two axes without copying.

        Parameters
        ----------
        dim1, dim2 : int
            Axes to swap; negative values count from the end.

        Returns
        -------
        ITensor
            A view sharing this tensor's buffer with the two shape and stride
            entries exchanged. When this tensor tracks gradients the view
            carries a `TransposeBackward` node that swaps the same axes of the
            incoming gradient.

        Raises
        ------
        IndexOutOfRangeError
            If either axis is outside ``[-rank, rank)``.
        """
        d1 = normalize_dim(dim1, self.rank)
        d2 = normalize_dim(dim2, self.rank)
        shape, strides = transposed(self.shape, self.strides, d1, d2)
        view = self._view(shape, strides)
        return view._record(TransposeBackward, (self,), dims=(d1, d2))

    def _clone(self: ITensor) -> "ITensor":
        """Materialize the logical contents into a fresh row-major tensor."""
        ...

    def _broadcast_to(self: ITensor, shape: Sequence[int]) -> "ITensor":
        """
        Materialize this tensor expanded to ``shape`` (same rank; every axis
        equal or expanded from 1). Returns ``self`` when the shapes agree.

        Raises
        ------
        ShapeMismatchError
            If this tensor cannot be expanded to ``shape``.
        """
        ...
