"""
Engine configuration.

Runtime knobs are read once from environment variables (mirroring how the
CUDA loader reads `CUDA_PATH`) into a frozen `EngineConfig`. Code reads the
active configuration through `get_config()`; tests and embedding
applications can replace it with `set_config(...)` or temporarily with the
`config_override(...)` context manager.

Environment variables
---------------------
STRIDEGRAD_BLOCK_SIZE : int
    Workers per block for one-dimensional kernel launches. Default 256.
STRIDEGRAD_MATMUL_TILE : int
    Edge length of the square (row, column) worker tile used by the matrix
    multiply kernel. Default 16.
STRIDEGRAD_DEVICE : str
    Default device for tensor construction ("cpu" or "cuda:<index>").
STRIDEGRAD_SEED : int
    Seed of the process-wide fallback random generator. Unset means fresh
    OS entropy.
STRIDEGRAD_GRAD_ACCUMULATION : "sum" | "append"
    How leaf nodes combine gradients arriving along several paths.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Mapping, Optional
import logging
import os
import threading

logger = logging.getLogger(__name__)


class GradientAccumulation(Enum):
    """
    Policy used by leaf (Accumulate) nodes.

    SUM
        Every incoming gradient is added into a single running total; this is
        the mathematically correct reverse-mode behaviour for reconverging
        paths.
    APPEND
        Every incoming gradient is kept as a separate entry;
        `gradients()` returns the first one.
    """

    SUM = "sum"
    APPEND = "append"


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable snapshot of the engine configuration.

    Attributes
    ----------
    block_size : int
        Workers per block for elementwise/reduction launches.
    matmul_tile : int
        Tile edge for the 2-D matrix multiply launch.
    default_device : str
        Device string used when a constructor receives `device=None`.
    seed : Optional[int]
        Seed for the fallback random generator; the generator is seeded
        again each time this value changes.
    gradient_accumulation : GradientAccumulation
        Leaf accumulation policy.
    """

    block_size: int = 256
    matmul_tile: int = 16
    default_device: str = "cpu"
    seed: Optional[int] = None
    gradient_accumulation: GradientAccumulation = GradientAccumulation.SUM

    def __post_init__(self) -> None:
        if int(self.block_size) <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        if int(self.matmul_tile) <= 0:
            raise ValueError(f"matmul_tile must be positive, got {self.matmul_tile}")
        if int(self.matmul_tile) ** 2 > 1024:
            raise ValueError(
                f"matmul_tile {self.matmul_tile} exceeds 1024 workers per block"
            )
        if not isinstance(self.gradient_accumulation, GradientAccumulation):
            object.__setattr__(
                self,
                "gradient_accumulation",
                GradientAccumulation(self.gradient_accumulation),
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build a configuration from environment variables.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Source mapping; defaults to `os.environ`.

        Raises
        ------
        ValueError
            If a variable is present but cannot be parsed.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        def _int(name: str) -> Optional[int]:
            raw = env.get(name, "").strip()
            if not raw:
                return None
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"{name} must be an integer, got {raw!r}") from None

        if (v := _int("STRIDEGRAD_BLOCK_SIZE")) is not None:
            kwargs["block_size"] = v
        if (v := _int("STRIDEGRAD_MATMUL_TILE")) is not None:
            kwargs["matmul_tile"] = v
        if (v := _int("STRIDEGRAD_SEED")) is not None:
            kwargs["seed"] = v
        device = env.get("STRIDEGRAD_DEVICE", "").strip()
        if device:
            kwargs["default_device"] = device
        policy = env.get("STRIDEGRAD_GRAD_ACCUMULATION", "").strip().lower()
        if policy:
            kwargs["gradient_accumulation"] = GradientAccumulation(policy)

        return cls(**kwargs)


_CONFIG: Optional[EngineConfig] = None
_CONFIG_LOCK = threading.Lock()


def get_config() -> EngineConfig:
    """Return the active configuration, loading it from the environment once."""
    global _CONFIG
    if _CONFIG is None:
        with _CONFIG_LOCK:
            if _CONFIG is None:
                _CONFIG = EngineConfig.from_env()
                logger.debug("loaded engine config %s", _CONFIG)
    return _CONFIG


def set_config(config: Optional[EngineConfig] = None, **overrides) -> EngineConfig:
    """
    Replace the active configuration.

    Parameters
    ----------
    config : EngineConfig, optional
        New base configuration; defaults to the currently active one.
    **overrides
        Field overrides applied on top of `config`.

    Returns
    -------
    EngineConfig
        The configuration now in effect.
    """
    global _CONFIG
    base = config if config is not None else get_config()
    new = replace(base, **overrides) if overrides else base
    with _CONFIG_LOCK:
        _CONFIG = new
    return new


@contextmanager
def config_override(**overrides) -> Iterator[EngineConfig]:
    """Temporarily apply configuration overrides within a `with` block."""
    previous = get_config()
    try:
        yield set_config(previous, **overrides)
    finally:
        set_config(previous)
