"""
Reduction mixin defining Tensor reduction APIs.

The public surface has a single reduction, the full ``sum``. The internal
``_sum_to_shape`` reduces a gradient computed in a broadcast output shape
back to an operand's shape; it is used by the backward graph only.
"""

from typing import Sequence
from abc import ABC

from .....domain._tensor import ITensor


class TensorMixinReduction(ABC):
    """
    Abstract mixin defining reduction operations for tensors.

    Notes
    -----
    Reductions accumulate serially in a fixed order, so results do not
    depend on the launch configuration.
    """

    def sum(self: ITensor) -> "ITensor":
        """
        Sum of all elements.

        Returns
        -------
        ITensor
            Tensor of shape ``(1,) * rank`` holding the total. Elements are
            accumulated one at a time in logical row-major order.

        Notes
        -----
        Backward rule:
            the upstream gradient (a single value) is broadcast back to
            ``self.shape``.
        """
        ...

    def _sum_to_shape(self: ITensor, shape: Sequence[int]) -> "ITensor":
        """
        Sum over every axis where ``shape`` has extent 1 and ``self`` does not.

        Returns ``self`` unchanged when the shapes already agree. The result
        is never tracked.
        """
        ...
