"""
Unary mixins and device-specific implementations.

Implementation modules are imported for their side effects (control-path
registration); only the base mixin is exported.
"""

from ._tensor_neg import *
from ._tensor_relu import *
from ._base import TensorMixinUnary

__all__ = [
    TensorMixinUnary.__name__,
]
