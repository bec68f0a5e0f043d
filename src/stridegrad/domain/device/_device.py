"""
Placement descriptors for tensors.

A tensor lives either in host memory or on one CUDA GPU. `Device` parses the
user-facing spelling ("cpu", "cuda", "cuda:1") once and exposes the parsed
`type` and `index`; operations dispatch on `Device.type` (a `DeviceType`),
so all GPUs share the CUDA kernel catalog while keeping distinct identities
for placement checks.
"""

from __future__ import annotations

from enum import Enum
from typing import Union
import re


class DeviceType(Enum):
    """Kind of memory a buffer lives in; also the control-path dispatch key."""

    CPU = "cpu"
    CUDA = "cuda"


_CUDA_SPELLING = re.compile(r"^cuda(?::(\d+))?$")


class Device:
    """
    Immutable-by-convention placement of a tensor.

    Parameters
    ----------
    device : str
        ``"cpu"``, ``"cuda"`` (GPU 0) or ``"cuda:<index>"``.

    Attributes
    ----------
    type : DeviceType
    index : int | None
        GPU ordinal; None for the host.

    Raises
    ------
    ValueError
        On any other spelling.
    """

    __slots__ = ("type", "index")

    def __init__(self, device: str):
        spelling = str(device)
        if spelling == "cpu":
            self.type = DeviceType.CPU
            self.index = None
            return
        match = _CUDA_SPELLING.match(spelling)
        if match is None:
            raise ValueError(
                f"Invalid device {device!r}; expected 'cpu', 'cuda' or 'cuda:<index>'"
            )
        self.type = DeviceType.CUDA
        self.index = int(match.group(1)) if match.group(1) is not None else 0

    @classmethod
    def coerce(cls, device: Union["Device", str, None]) -> "Device":
        """
        Accept a `Device`, a device string, or None (the configured default,
        `STRIDEGRAD_DEVICE`, which is "cpu" unless overridden).
        """
        if isinstance(device, Device):
            return device
        if device is None:
            from ...infrastructure._config import get_config

            return cls(get_config().default_device)
        return cls(device)

    def is_cpu(self) -> bool:
        return self.type is DeviceType.CPU

    def is_cuda(self) -> bool:
        return self.type is DeviceType.CUDA

    def _key(self) -> tuple:
        return (self.type, self.index)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Device):
            return self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.is_cpu():
            return "cpu"
        return f"cuda:{self.index}"

    def __repr__(self) -> str:
        return f"Device({str(self)!r})"
