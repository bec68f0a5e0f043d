"""
Concrete device-backed Tensor.

This module provides `Tensor`, the concrete implementation of the domain
`ITensor` protocol. A tensor is a `DeviceBuffer` plus shape/stride metadata
and an optional backward node:

- freshly constructed tensors own a new buffer with row-major strides,
- `transpose` produces a view that shares (and co-owns) its source's buffer,
- operations always allocate a fresh output buffer.

Operators are declared on the mixins (`mixins/*/_base.py`) and implemented
per device type by control paths registered with
`tensor_control_path_manager`. The helpers in this module (`_binary_op`,
`_unary_op`, `_record`) hold the backend-independent parts those control
paths share: validation, output allocation and backward-node wiring.

Design notes
------------
- Every precondition is checked before any device work is issued.
- Element access and printing perform blocking host readbacks.
- Graph recording is skipped entirely inside `no_grad()`.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, Callable, Optional, Sequence, Union
import logging
import warnings

import numpy as np

from ...domain._errors import (
    DeviceMismatchError,
    ShapeMismatchError,
    UngradientedTensorError,
)
from ...domain._tensor import ITensor
from ...domain.device._device import Device, DeviceType
from ..autograd._backward import AccumulateGradients, BackwardNode, run_backward
from ..autograd._grad_mode import is_grad_enabled
from ..ops import _cuda_runtime
from ..ops.elementwise_cpu import resolve_offsets
from . import _random
from ._broadcast import prepare_broadcast
from ._device_buffer import DeviceBuffer
from ._layout import (
    check_indices,
    flat_offset,
    normalize_shape,
    numel,
    row_major_strides,
)
from ._render import render

from .mixins.arithmetic import TensorMixinArithmetic
from .mixins.unary import TensorMixinUnary
from .mixins.reduction import TensorMixinReduction
from .mixins.linalg import TensorMixinLinalg
from .mixins.memory import TensorMixinMemory

Number = Union[int, float]

logger = logging.getLogger(__name__)

_SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


def _check_dtype(dtype: Any) -> np.dtype:
    dt = np.dtype(dtype)
    if dt not in _SUPPORTED_DTYPES:
        raise TypeError(f"unsupported dtype {dt}; expected float32 or float64")
    return dt


class Tensor(
    TensorMixinArithmetic,
    TensorMixinUnary,
    TensorMixinReduction,
    TensorMixinLinalg,
    TensorMixinMemory,
    ITensor,
):
    """
    N-dimensional array held in a device buffer.

    Parameters
    ----------
    shape : int | Sequence[int]
        Tensor shape; every extent must be non-negative.
    device : Device | str, optional
        Placement. Defaults to the configured default device.
    dtype : np.dtype, optional
        float32 (default) or float64.
    backward : BackwardNode, optional
        Backward node to attach. Normally set by operations.

    Notes
    -----
    The buffer is allocated but not initialized; use the factories
    (`from_vector`, `from_scalar`, `random_uniform`, `random_normal`) to
    obtain tensors with defined contents.
    """

    def __init__(
        self,
        shape: Union[int, Sequence[int]],
        device: Union[Device, str, None] = None,
        *,
        dtype: Any = np.float32,
        backward: Optional[BackwardNode] = None,
    ) -> None:
        shape = normalize_shape(shape)
        device = Device.coerce(device)
        dtype = _check_dtype(dtype)
        buffer = DeviceBuffer.allocate(device, numel(shape), dtype)
        self._init_fields(buffer, shape, row_major_strides(shape), backward)

    def _init_fields(
        self,
        buffer: DeviceBuffer,
        shape: tuple[int, ...],
        strides: tuple[int, ...],
        backward: Optional[BackwardNode],
    ) -> None:
        self._buffer = buffer
        self._shape = tuple(shape)
        self._strides = tuple(strides)
        self._backward = backward
        buffer.attach(self)

    def _view(self, shape: Sequence[int], strides: Sequence[int]) -> "Tensor":
        """
        Return a tensor sharing this tensor's buffer with a new layout.

        The view co-owns the buffer; it carries no backward node.
        """
        view = type(self).__new__(type(self))
        view._init_fields(self._buffer, tuple(shape), tuple(strides), None)
        return view

    # ------------------------------------------------------------------
    # Layout and placement
    # ------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def strides(self) -> tuple[int, ...]:
        """Element strides; row-major unless this tensor is a transposed view."""
        return self._strides

    @property
    def n_elements(self) -> int:
        return numel(self._shape)

    @property
    def size(self) -> int:
        """Logical size in bytes (`n_elements * itemsize`)."""
        return self.n_elements * self.dtype.itemsize

    @property
    def dtype(self) -> np.dtype:
        return self._buffer.dtype

    @property
    def device(self) -> Device:
        return self._buffer.device

    @property
    def data(self) -> DeviceBuffer:
        """The (possibly shared) device buffer."""
        return self._buffer

    @property
    def backward_node(self) -> Optional[BackwardNode]:
        return self._backward

    @property
    def _state(self) -> DeviceType:
        """Control-path dispatch key."""
        return self._buffer.device.type

    # ------------------------------------------------------------------
    # Host access
    # ------------------------------------------------------------------
    def __getitem__(self, indices: Union[int, Sequence[int]]) -> float:
        """
        Blocking readback of one element.

        Parameters
        ----------
        indices : int | Sequence[int]
            Full multi-index (a bare int is accepted for rank-1 tensors).

        Raises
        ------
        IndexOutOfRangeError
            If the index length differs from the rank or any entry is outside
            `[0, shape[i])`. Negative indices are rejected.
        """
        if not isinstance(indices, (tuple, list)):
            indices = (indices,)
        idx = check_indices(indices, self._shape)
        return self._buffer.read_element(flat_offset(self._strides, idx))

    def to_numpy(self) -> np.ndarray:
        """
        Return a host copy of the logical contents, shaped like the tensor.

        Views are gathered through their strides, so a transposed view yields
        the transposed matrix.
        """
        host = self._buffer.download()
        flat = np.arange(self.n_elements, dtype=np.int64)
        (offsets,) = resolve_offsets(flat, row_major_strides(self._shape), self._strides)
        return host[offsets].reshape(self._shape)

    def render(self) -> str:
        """Two-line text rendering: nested values, then layout metadata."""
        return render(self)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"Tensor(shape={self._shape}, strides={self._strides}, "
            f"device={self.device}, dtype={self.dtype})"
        )

    # ------------------------------------------------------------------
    # Autograd
    # ------------------------------------------------------------------
    def requires_gradients(self) -> "Tensor":
        """
        Attach a fresh gradient-accumulating leaf node.

        Returns
        -------
        Tensor
            `self`, for chaining.
        """
        self._backward = AccumulateGradients()
        return self

    def gradients(self) -> "Tensor":
        """
        Return the gradient accumulated on this leaf.

        Raises
        ------
        UngradientedTensorError
            If the tensor does not accumulate gradients, or no gradient has
            reached it yet.
        """
        node = self._backward
        if not isinstance(node, AccumulateGradients):
            raise UngradientedTensorError(
                "tensor does not accumulate gradients; call requires_gradients() first"
            )
        return node.first()

    def zero_gradients(self) -> None:
        """Forget every gradient accumulated on this leaf."""
        node = self._backward
        if not isinstance(node, AccumulateGradients):
            raise UngradientedTensorError(
                "tensor does not accumulate gradients; call requires_gradients() first"
            )
        node.clear()

    def backward(self, gradient: Optional["Tensor"] = None) -> None:
        """
        Run reverse-mode differentiation from this tensor.

        Parameters
        ----------
        gradient : Tensor, optional
            Gradient of the final objective with respect to this tensor. When
            omitted the tensor must hold exactly one element and is seeded
            with ones.

        Raises
        ------
        UngradientedTensorError
            If this tensor is not part of a backward graph.
        ShapeMismatchError
            If no gradient is given for a multi-element tensor, or the given
            gradient's shape differs from this tensor's shape.
        """
        node = self._backward
        if node is None:
            raise UngradientedTensorError(
                "backward() called on a tensor that is not part of a backward graph"
            )
        if gradient is None:
            if self.n_elements != 1:
                raise ShapeMismatchError(
                    "backward",
                    self._shape,
                    (1,) * self.rank,
                    "an implicit gradient needs a single-element tensor",
                )
            gradient = type(self).from_scalar(
                1.0, self._shape, device=self.device, dtype=self.dtype
            )
        else:
            if gradient.shape != self._shape:
                raise ShapeMismatchError("backward", self._shape, gradient.shape)
            self._check_same_placement(gradient)
        run_backward(node, gradient)

    # ------------------------------------------------------------------
    # Internal helpers shared by control paths
    # ------------------------------------------------------------------
    def _device_scope(self):
        if self.device.is_cuda():
            return _cuda_runtime.device_scope(self.device.index)
        return nullcontext()

    def _check_same_placement(self, other: "Tensor") -> None:
        if self.device != other.device:
            raise DeviceMismatchError(str(self.device), str(other.device))
        if self.dtype != other.dtype:
            raise TypeError(f"dtype mismatch: {self.dtype} vs {other.dtype}")

    @staticmethod
    def _as_tensor_like(x: Union["Tensor", Number], like: "Tensor") -> "Tensor":
        """
        Convert an operand into a Tensor compatible with a reference tensor.

        Python scalars become a tensor of shape `(1,) * like.rank` on
        `like`'s device and dtype, which then broadcasts against `like`.

        Raises
        ------
        TypeError
            If `x` is neither a Tensor nor a real scalar.
        """
        if isinstance(x, Tensor):
            return x
        if isinstance(x, (int, float, np.integer, np.floating)) and not isinstance(x, bool):
            return type(like).from_scalar(
                float(x), (1,) * like.rank, device=like.device, dtype=like.dtype
            )
        raise TypeError(f"Unsupported operand type: {type(x)!r}")

    def _record(
        self,
        node_cls: type,
        inputs: Sequence["Tensor"],
        saved: Sequence["Tensor"] = (),
        **meta: Any,
    ) -> "Tensor":
        """
        Attach a `node_cls` backward node to this (output) tensor when any
        input tracks gradients and recording is enabled.
        """
        if not is_grad_enabled():
            return self
        predecessors = tuple(t.backward_node for t in inputs)
        if all(p is None for p in predecessors):
            return self
        self._backward = node_cls(
            saved_tensors=tuple(saved),
            predecessors=predecessors,
            saved_meta=dict(meta),
        )
        return self

    def _binary_op(
        self,
        other: Union["Tensor", Number],
        op: str,
        kernel: Callable[..., None],
        node_cls: Optional[type],
        *,
        save_inputs: bool = False,
    ) -> "Tensor":
        """
        Broadcasting binary forward pass.

        Validates placement and shapes, allocates the output, launches
        `kernel` and, if `node_cls` is given, records the backward node.
        """
        other_t = self._as_tensor_like(other, self)
        self._check_same_placement(other_t)
        plan = prepare_broadcast(
            self._shape, self._strides, other_t.shape, other_t.strides, op=op
        )

        out = type(self)(plan.shape, self.device, dtype=self.dtype)
        with self._device_scope():
            kernel(op, self._buffer.handle, other_t.data.handle, out.data.handle, plan)

        if node_cls is None:
            if is_grad_enabled() and (
                self._backward is not None or other_t.backward_node is not None
            ):
                warnings.warn(
                    f"{op} is forward-only; gradients will not flow through it",
                    RuntimeWarning,
                    stacklevel=4,
                )
            return out

        saved = (self, other_t) if save_inputs else ()
        return out._record(
            node_cls,
            (self, other_t),
            saved,
            input_shapes=(self._shape, other_t.shape),
        )

    def _unary_op(
        self,
        op: str,
        kernel: Callable[..., None],
        *,
        shape: Optional[Sequence[int]] = None,
        in_strides: Optional[Sequence[int]] = None,
    ) -> "Tensor":
        """
        Strided unary forward pass into a fresh row-major tensor.

        `shape`/`in_strides` default to this tensor's layout; the copy kernel
        passes a larger shape with zero strides to broadcast-expand.
        """
        out_shape = self._shape if shape is None else tuple(shape)
        src_strides = self._strides if in_strides is None else tuple(in_strides)
        out = type(self)(out_shape, self.device, dtype=self.dtype)
        with self._device_scope():
            kernel(
                op,
                self._buffer.handle,
                out.data.handle,
                out_shape,
                src_strides,
                out.strides,
            )
        return out

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def from_vector(
        cls,
        values: Sequence[float],
        shape: Union[int, Sequence[int]],
        *,
        device: Union[Device, str, None] = None,
        dtype: Any = np.float32,
    ) -> "Tensor":
        """
        Build a tensor from values listed in row-major order.

        Raises
        ------
        ValueError
            If the number of values differs from the shape's element count.
        """
        shape = normalize_shape(shape)
        host = np.asarray(values, dtype=_check_dtype(dtype)).reshape(-1)
        if host.size != numel(shape):
            raise ValueError(
                f"from_vector: {host.size} values cannot fill shape {shape} "
                f"({numel(shape)} elements)"
            )
        t = cls(shape, device, dtype=dtype)
        t._buffer.upload(host)
        return t

    @classmethod
    def from_scalar(
        cls,
        value: float,
        shape: Union[int, Sequence[int]],
        *,
        device: Union[Device, str, None] = None,
        dtype: Any = np.float32,
    ) -> "Tensor":
        """Build a tensor with every element equal to `value`."""
        t = cls(shape, device, dtype=dtype)
        t._buffer.upload(np.full(t.n_elements, value, dtype=t.dtype))
        return t

    @classmethod
    def random_uniform(
        cls,
        low: float,
        high: float,
        shape: Union[int, Sequence[int]],
        *,
        device: Union[Device, str, None] = None,
        dtype: Any = np.float32,
        generator: Optional[np.random.Generator] = None,
    ) -> "Tensor":
        """
        Build a tensor of independent samples from `U[low, high)`.

        Parameters
        ----------
        generator : np.random.Generator, optional
            Explicit random source; the seeded process-wide generator is used
            otherwise.
        """
        if not float(low) <= float(high):
            raise ValueError(f"random_uniform: low={low} exceeds high={high}")
        t = cls(shape, device, dtype=dtype)
        n = t.n_elements
        host = _random.draw(lambda g: g.uniform(low, high, size=n), generator)
        t._buffer.upload(host.astype(t.dtype))
        return t

    @classmethod
    def random_normal(
        cls,
        mean: float,
        std: float,
        shape: Union[int, Sequence[int]],
        *,
        device: Union[Device, str, None] = None,
        dtype: Any = np.float32,
        generator: Optional[np.random.Generator] = None,
    ) -> "Tensor":
        """Build a tensor of independent samples from `N(mean, std^2)`."""
        if float(std) < 0:
            raise ValueError(f"random_normal: std must be non-negative, got {std}")
        t = cls(shape, device, dtype=dtype)
        n = t.n_elements
        host = _random.draw(lambda g: g.normal(mean, std, size=n), generator)
        t._buffer.upload(host.astype(t.dtype))
        return t
