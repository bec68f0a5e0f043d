"""
Reduction mixins and device-specific implementations.

Implementation modules are imported for their side effects (control-path
registration); only the base mixin is exported.
"""

from ._tensor_sum import *
from ._tensor_sum_to_shape import *
from ._base import TensorMixinReduction

__all__ = [
    TensorMixinReduction.__name__,
]
