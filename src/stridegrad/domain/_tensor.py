"""
Tensor interface definitions.

This module defines the domain-level interface for tensor-like objects using
structural typing. Collaborators that consume tensors (network layers, losses,
optimizers) can type against `ITensor` without importing the concrete,
device-backed implementation.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

from .device._device import Device

Number = Union[int, float]


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor interface.

    An `ITensor` is an N-dimensional array held in a device buffer and
    described by shape/stride metadata, optionally attached to a backward
    graph.
    """

    # ---------------------------------------------------------------------
    # Layout and placement
    # ---------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, ...]: ...

    @property
    def rank(self) -> int: ...

    @property
    def strides(self) -> tuple[int, ...]: ...

    @property
    def n_elements(self) -> int: ...

    @property
    def size(self) -> int: ...

    @property
    def device(self) -> Device: ...

    @property
    def backward_node(self) -> Optional[Any]: ...

    # ---------------------------------------------------------------------
    # Autograd
    # ---------------------------------------------------------------------
    def requires_gradients(self) -> "ITensor": ...

    def gradients(self) -> "ITensor": ...

    def backward(self, gradient: Optional["ITensor"] = None) -> None: ...

    # ---------------------------------------------------------------------
    # Operations
    # ---------------------------------------------------------------------
    def __getitem__(self, indices: Sequence[int]) -> float: ...

    def __neg__(self) -> "ITensor": ...

    def __add__(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def __sub__(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def __mul__(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def __truediv__(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def mm(self, other: "ITensor") -> "ITensor": ...

    def transpose(self, dim1: int, dim2: int) -> "ITensor": ...

    def relu(self) -> "ITensor": ...

    def relu_d(self) -> "ITensor": ...

    def sum(self) -> "ITensor": ...
