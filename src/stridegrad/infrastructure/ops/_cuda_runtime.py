"""
CuPy runtime access for the CUDA kernel catalog.

CuPy is an optional dependency (`pip install stridegrad[cuda]`). This module
is the single import point for it:

- `HAS_CUPY` / `cuda_available()` report whether CUDA tensors can be used,
- `require_cupy(op, device)` raises `DeviceNotSupportedError` otherwise,
- `get_kernel(...)` compiles (once) and caches a `cupy.RawKernel`,
- `index_array(...)` uploads host int64 metadata (strides, offsets),
- `device_scope(index)` makes a GPU current around a launch.

Kernels are compiled with `--fmad=false` so the CUDA catalog rounds exactly
like the CPU catalog (no fused multiply-add contraction).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Sequence
import logging

import numpy as np

from ...domain._errors import DeviceNotSupportedError

try:
    import cupy as cp

    HAS_CUPY = True
except ImportError:
    cp = None
    HAS_CUPY = False

logger = logging.getLogger(__name__)

_COMPILE_OPTIONS = ("--fmad=false",)

_CTYPE_BY_DTYPE = {
    np.dtype(np.float32): "float",
    np.dtype(np.float64): "double",
}


@lru_cache(maxsize=1)
def cuda_available() -> bool:
    """Return True if CuPy is importable and at least one GPU is visible."""
    if not HAS_CUPY:
        return False
    try:
        return cp.cuda.runtime.getDeviceCount() > 0
    except cp.cuda.runtime.CUDARuntimeError:
        return False


def require_cupy(op: str, device: object) -> None:
    """
    Raise `DeviceNotSupportedError` unless CUDA tensors are usable.
    """
    if not cuda_available():
        raise DeviceNotSupportedError(op=op, device=str(device))


def ctype_for(dtype: np.dtype) -> str:
    """
    Return the CUDA C element type for a NumPy dtype.

    Raises
    ------
    TypeError
        If `dtype` is not float32/float64.
    """
    dt = np.dtype(dtype)
    try:
        return _CTYPE_BY_DTYPE[dt]
    except KeyError:
        raise TypeError(f"CUDA kernels support float32/float64 only, got {dt}") from None


@lru_cache(maxsize=None)
def get_kernel(source: str, name: str) -> "cp.RawKernel":
    """
    Compile and cache a kernel.

    Parameters
    ----------
    source : str
        Complete CUDA C source (already specialized for an element type).
    name : str
        `extern "C"` symbol of the kernel inside `source`.
    """
    logger.debug("compiling CUDA kernel %s", name)
    return cp.RawKernel(source, name, options=_COMPILE_OPTIONS)


def index_array(values: Sequence[int]) -> "cp.ndarray":
    """Upload host integers as a device int64 array (at least one slot)."""
    host = np.asarray(list(values) or [0], dtype=np.int64)
    return cp.asarray(host)


def device_scope(index: int):
    """Context manager making CUDA device `index` current for launches."""
    return cp.cuda.Device(int(index))
