"""
Error taxonomy for stridegrad.

Every precondition of the tensor engine (broadcast compatibility, matmul
dimensions, index bounds, gradient availability, device allocation and
placement) is validated at the API boundary before any device work is issued.
A violated precondition raises one of the exceptions below at the call that
detects it; no operation returns a partially-valid tensor.

All errors derive from `StridegradError`, itself a `RuntimeError`, so callers
can catch the whole family at once.
"""

from __future__ import annotations

from typing import Sequence


class StridegradError(RuntimeError):
    """Base class for all engine errors."""


class ShapeMismatchError(StridegradError):
    """
    Raised when two operand shapes cannot be combined.

    This covers rank mismatches (broadcasting across different ranks is not
    supported), extents that are neither equal nor 1 on some axis, and batch
    dimensions that differ in a matrix multiply.

    Attributes
    ----------
    op : str
        Name of the operation that rejected the shapes.
    shape1, shape2 : tuple[int, ...]
        The offending operand shapes.
    """

    def __init__(
        self, op: str, shape1: Sequence[int], shape2: Sequence[int], detail: str = ""
    ) -> None:
        self.op = op
        self.shape1 = tuple(shape1)
        self.shape2 = tuple(shape2)
        msg = f"{op}: incompatible shapes {self.shape1} and {self.shape2}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class DimensionMismatchError(StridegradError):
    """
    Raised when a matrix multiply's shared dimension does not agree.

    `tensor1.shape[-1]` must equal `tensor2.shape[-2]`.

    Attributes
    ----------
    op : str
        Name of the operation (normally "mm").
    shape1, shape2 : tuple[int, ...]
        The operand shapes.
    """

    def __init__(self, op: str, shape1: Sequence[int], shape2: Sequence[int]) -> None:
        self.op = op
        self.shape1 = tuple(shape1)
        self.shape2 = tuple(shape2)
        super().__init__(
            f"{op}: shared dimension mismatch, {self.shape1[-1]} "
            f"(from {self.shape1}) vs {self.shape2[-2]} (from {self.shape2})"
        )


class IndexOutOfRangeError(StridegradError, IndexError):
    """
    Raised when a multi-index (or a dimension index) falls outside a shape.

    Attributes
    ----------
    indices : tuple[int, ...]
        The rejected index.
    shape : tuple[int, ...]
        The shape it was checked against.
    """

    def __init__(self, indices: Sequence[int], shape: Sequence[int], detail: str = "") -> None:
        self.indices = tuple(indices)
        self.shape = tuple(shape)
        msg = f"index {self.indices} out of range for shape {self.shape}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class UngradientedTensorError(StridegradError):
    """
    Raised when gradients are requested from a tensor that cannot supply them.

    Typical causes: `gradients()` on a tensor that never called
    `requires_gradients()`, `gradients()` before any gradient was routed to
    the leaf, or `backward()` on a tensor outside any backward graph.
    """


class AllocationError(StridegradError, MemoryError):
    """
    Raised when a device buffer cannot be allocated.

    Allocation failures are fatal for the requesting operation and are never
    retried.

    Attributes
    ----------
    nbytes : int
        Requested allocation size.
    device : str
        Device on which the allocation was attempted.
    """

    def __init__(self, nbytes: int, device: str) -> None:
        self.nbytes = int(nbytes)
        self.device = str(device)
        super().__init__(f"failed to allocate {self.nbytes} bytes on '{self.device}'")


class DeviceNotSupportedError(StridegradError):
    """
    Raised when an operation is requested on a device backend that is not
    available in this process (e.g. CUDA without CuPy or without a GPU).

    Attributes
    ----------
    op : str
        The name of the operation that was attempted.
    device : str
        String representation of the device.
    """

    def __init__(self, op: str, device: str) -> None:
        super().__init__(f"{op} is not available for device '{device}'.")
        self.op = op
        self.device = device


class DeviceMismatchError(StridegradError):
    """
    Raised when an operation combines tensors that live on different devices.
    """

    def __init__(self, device_a: str, device_b: str) -> None:
        super().__init__(f"Device mismatch: '{device_a}' vs '{device_b}'.")
        self.device_a = device_a
        self.device_b = device_b
