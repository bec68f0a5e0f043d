"""
Arithmetic mixins and device-specific implementations for Tensor operations.

This package aggregates the arithmetic Tensor mixin and its concrete
control-path implementations:

- addition           (``__add__`` / ``__radd__``)
- subtraction        (``__sub__`` / ``__rsub__``)
- multiplication     (``__mul__`` / ``__rmul__``)
- true division      (``__truediv__`` / ``__rtruediv__``)

Concrete implementation modules are imported for their *side effects*:
registering control paths with the tensor control-path manager. Only the
base mixin is exported.
"""

from ._tensor_addition import *
from ._tensor_subtraction import *
from ._tensor_multiplication import *
from ._tensor_division import *
from ._base import TensorMixinArithmetic

__all__ = [
    TensorMixinArithmetic.__name__,
]
