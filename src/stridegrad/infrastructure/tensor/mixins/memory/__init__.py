"""
Memory mixins and device-specific implementations.

Implementation modules are imported for their side effects (control-path
registration); only the base mixin is exported.
"""

from ._tensor_copy import *
from ._base import TensorMixinMemory

__all__ = [
    TensorMixinMemory.__name__,
]
