from ._tensor import Tensor
from ._device_buffer import DeviceBuffer
from ._random import manual_seed

__all__ = [
    Tensor.__name__,
    DeviceBuffer.__name__,
    manual_seed.__name__,
]
