"""
stridegrad: a strided, device-resident tensor engine with reverse-mode
automatic differentiation.

Quick start
-----------
>>> import stridegrad as sg
>>> w = sg.Tensor.random_normal(0.0, 1.0, (3, 2)).requires_gradients()
>>> x = sg.Tensor.from_vector([1, 2, 3, 4, 5, 6], (2, 3))
>>> loss = sg.relu(x @ w).sum()
>>> loss.backward()
>>> w.gradients().shape
(3, 2)

The functional helpers below mirror the `Tensor` methods of the same name.
"""

import logging

from .domain import (
    StridegradError,
    ShapeMismatchError,
    DimensionMismatchError,
    IndexOutOfRangeError,
    UngradientedTensorError,
    AllocationError,
    DeviceNotSupportedError,
    DeviceMismatchError,
    ITensor,
    Device,
    DeviceType,
)
from .infrastructure import (
    EngineConfig,
    GradientAccumulation,
    get_config,
    set_config,
    config_override,
    no_grad,
    enable_grad,
    is_grad_enabled,
    Tensor,
    DeviceBuffer,
    manual_seed,
)
from .infrastructure.ops._cuda_runtime import cuda_available

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

from_vector = Tensor.from_vector
from_scalar = Tensor.from_scalar
random_uniform = Tensor.random_uniform
random_normal = Tensor.random_normal


def mm(tensor1: Tensor, tensor2: Tensor) -> Tensor:
    """Batched matrix product, see `Tensor.mm`."""
    return tensor1.mm(tensor2)


def relu(tensor: Tensor) -> Tensor:
    return tensor.relu()


def relu_d(tensor: Tensor) -> Tensor:
    return tensor.relu_d()


def sum(tensor: Tensor) -> Tensor:
    """Full reduction to shape ``(1,) * rank``, see `Tensor.sum`."""
    return tensor.sum()


def transpose(tensor: Tensor, dim1: int, dim2: int) -> Tensor:
    """Axis-swapping view, see `Tensor.transpose`."""
    return tensor.transpose(dim1, dim2)


def negate(tensor: Tensor) -> Tensor:
    return -tensor


__all__ = [
    "StridegradError",
    "ShapeMismatchError",
    "DimensionMismatchError",
    "IndexOutOfRangeError",
    "UngradientedTensorError",
    "AllocationError",
    "DeviceNotSupportedError",
    "DeviceMismatchError",
    "ITensor",
    "Device",
    "DeviceType",
    "EngineConfig",
    "GradientAccumulation",
    "get_config",
    "set_config",
    "config_override",
    "no_grad",
    "enable_grad",
    "is_grad_enabled",
    "Tensor",
    "DeviceBuffer",
    "manual_seed",
    "cuda_available",
    "from_vector",
    "from_scalar",
    "random_uniform",
    "random_normal",
    "mm",
    "relu",
    "relu_d",
    "sum",
    "transpose",
    "negate",
]
