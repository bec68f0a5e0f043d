from ._config import (
    EngineConfig,
    GradientAccumulation,
    get_config,
    set_config,
    config_override,
)
from .autograd import no_grad, enable_grad, is_grad_enabled
from .tensor import Tensor, DeviceBuffer, manual_seed

__all__ = [
    EngineConfig.__name__,
    GradientAccumulation.__name__,
    get_config.__name__,
    set_config.__name__,
    config_override.__name__,
    no_grad.__name__,
    enable_grad.__name__,
    is_grad_enabled.__name__,
    Tensor.__name__,
    DeviceBuffer.__name__,
    manual_seed.__name__,
]
