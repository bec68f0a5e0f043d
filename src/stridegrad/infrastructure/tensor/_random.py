"""
Random number source for tensor factories.

Factories accept an explicit `numpy.random.Generator`. When none is given
they draw from a process-wide fallback generator guarded by a lock. The
fallback is seeded from `EngineConfig.seed` (fresh OS entropy when unset)
and is seeded again whenever the configured seed changes, so
``config_override(seed=...)`` makes draws reproducible. `manual_seed`
replaces the fallback until the configured seed next changes.
"""

from __future__ import annotations

from typing import Callable, Optional
import threading

import numpy as np

from .._config import get_config

_UNSEEDED = object()

_GENERATOR: Optional[np.random.Generator] = None
# configured seed the fallback generator was last aligned with
_CONFIG_SEED: object = _UNSEEDED
_LOCK = threading.Lock()


def manual_seed(seed: Optional[int]) -> None:
    """Re-seed the fallback generator."""
    global _GENERATOR, _CONFIG_SEED
    with _LOCK:
        _GENERATOR = np.random.default_rng(seed)
        _CONFIG_SEED = get_config().seed


def _fallback() -> np.random.Generator:
    global _GENERATOR, _CONFIG_SEED
    seed = get_config().seed
    if _GENERATOR is None or seed != _CONFIG_SEED:
        _GENERATOR = np.random.default_rng(seed)
        _CONFIG_SEED = seed
    return _GENERATOR


def draw(
    sample: Callable[[np.random.Generator], np.ndarray],
    generator: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Draw host samples with `sample(generator)`.

    Parameters
    ----------
    sample : Callable[[np.random.Generator], np.ndarray]
        Sampling routine, e.g. ``lambda g: g.uniform(0.0, 1.0, size=n)``.
    generator : np.random.Generator, optional
        Explicit generator; the locked fallback generator is used otherwise.
    """
    if generator is not None:
        return sample(generator)
    with _LOCK:
        return sample(_fallback())
