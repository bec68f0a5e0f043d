"""
Device buffer storage and lifetime management.

This module defines `DeviceBuffer`, a reference-counted handle to one
contiguous device allocation sized for a fixed element count. Every tensor
owns exactly one buffer; views produced by `transpose` share their source's
buffer instead of copying it.

Core Concepts
-------------
- **Backends**:
    CPU buffers hold a one-dimensional NumPy array; CUDA buffers hold a
    one-dimensional CuPy device array. Kernels receive the raw array handle.

- **Shared ownership**:
    Each tensor that references a buffer registers itself with `attach`.
    The registration installs a `weakref.finalize` on the tensor that calls
    `_detach` when the tensor is collected. When the last owner goes away
    the device memory is released and the buffer is marked released.

- **Host transfers**:
    `upload` copies a host array into the buffer, `read_element` performs a
    blocking single-element readback (used by indexing and printing), and
    `download` returns a host copy of the whole allocation.

Thread Safety
-------------
Reference count updates are protected by an internal lock. Kernel launches
and transfers are not synchronized beyond the device's own stream ordering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
import logging
import threading
import weakref

import numpy as np

from ...domain._errors import AllocationError
from ...domain.device._device import Device
from ..ops import _cuda_runtime

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class DeviceBuffer:
    """
    Reference-counted wrapper around one device allocation.

    Attributes
    ----------
    device : Device
        Device that holds the memory.
    n_elements : int
        Number of elements the allocation is sized for.
    dtype : np.dtype
        Element dtype.
    handle : Any
        The backing array (NumPy on CPU, CuPy on CUDA); None once released.

    Notes
    -----
    This class intentionally avoids defining `__del__`; lifetime is driven by
    the finalizers installed on owning tensors.
    """

    device: Device
    n_elements: int
    dtype: np.dtype
    handle: Any = None

    _refcnt: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def allocate(cls, device: Device, n_elements: int, dtype: np.dtype) -> "DeviceBuffer":
        """
        Allocate an uninitialized buffer of `n_elements` elements.

        Raises
        ------
        AllocationError
            If the backend cannot provide the memory.
        DeviceNotSupportedError
            If `device` is CUDA and no CUDA runtime is available.
        """
        dt = np.dtype(dtype)
        n = int(n_elements)
        nbytes = n * dt.itemsize

        if device.is_cuda():
            _cuda_runtime.require_cupy("allocate", device)
            cp = _cuda_runtime.cp
            try:
                with cp.cuda.Device(device.index):
                    handle = cp.empty(n, dtype=dt)
            except cp.cuda.memory.OutOfMemoryError as e:
                raise AllocationError(nbytes, str(device)) from e
        else:
            try:
                handle = np.empty(n, dtype=dt)
            except (MemoryError, ValueError) as e:
                raise AllocationError(nbytes, str(device)) from e

        logger.debug("allocated %d bytes on %s", nbytes, device)
        return cls(device=device, n_elements=n, dtype=dt, handle=handle)

    @property
    def nbytes(self) -> int:
        return int(self.n_elements) * np.dtype(self.dtype).itemsize

    @property
    def refcount(self) -> int:
        """Number of live tensors currently sharing this buffer."""
        return self._refcnt

    @property
    def is_released(self) -> bool:
        return self.handle is None

    def attach(self, owner: object) -> None:
        """
        Register `owner` (a tensor) as sharing this buffer.

        The buffer stays alive until every attached owner has been collected.
        """
        with self._lock:
            self._refcnt += 1
        weakref.finalize(owner, self._detach)

    def _detach(self) -> None:
        """
        Drop one owner; release the device memory when none remain.

        Runs from a finalizer, so it must never raise.
        """
        with self._lock:
            self._refcnt -= 1
            if self._refcnt > 0:
                return
            handle, self.handle = self.handle, None
        if handle is not None:
            logger.debug("released %d bytes on %s", self.nbytes, self.device)
            del handle

    def _require_live(self) -> Any:
        if self.handle is None:
            raise RuntimeError("device buffer has already been released")
        return self.handle

    # ------------------------------------------------------------------
    # Host transfers
    # ------------------------------------------------------------------
    def upload(self, host: np.ndarray) -> None:
        """
        Copy a host array (flattened, C order) into the buffer.

        Raises
        ------
        ValueError
            If the host array does not hold exactly `n_elements` values.
        """
        arr = np.ascontiguousarray(np.asarray(host, dtype=self.dtype)).reshape(-1)
        if arr.size != self.n_elements:
            raise ValueError(
                f"expected {self.n_elements} values, got {arr.size}"
            )
        handle = self._require_live()
        if self.device.is_cuda():
            handle.set(arr)
        else:
            handle[...] = arr

    def read_element(self, offset: int) -> float:
        """
        Blocking readback of one element at a flat buffer offset.
        """
        handle = self._require_live()
        off = int(offset)
        if self.device.is_cuda():
            # .get() copies device->host and waits for prior work on the stream
            return float(handle[off : off + 1].get()[0])
        return float(handle[off])

    def download(self) -> np.ndarray:
        """Return a host copy of the entire allocation."""
        handle = self._require_live()
        if self.device.is_cuda():
            return _cuda_runtime.cp.asnumpy(handle)
        return handle.copy()

    def synchronize(self) -> None:
        """Block until all queued device work touching this buffer has finished."""
        if self.device.is_cuda():
            _cuda_runtime.cp.cuda.Device(self.device.index).synchronize()
