from ._errors import (
    StridegradError,
    ShapeMismatchError,
    DimensionMismatchError,
    IndexOutOfRangeError,
    UngradientedTensorError,
    AllocationError,
    DeviceNotSupportedError,
    DeviceMismatchError,
)
from ._tensor import ITensor
from .device import Device, DeviceType

__all__ = [
    StridegradError.__name__,
    ShapeMismatchError.__name__,
    DimensionMismatchError.__name__,
    IndexOutOfRangeError.__name__,
    UngradientedTensorError.__name__,
    AllocationError.__name__,
    DeviceNotSupportedError.__name__,
    DeviceMismatchError.__name__,
    ITensor.__name__,
    Device.__name__,
    DeviceType.__name__,
]
