from ._tensor_matmul import *
from ._base import TensorMixinLinalg

__all__ = [
    TensorMixinLinalg.__name__,
]
