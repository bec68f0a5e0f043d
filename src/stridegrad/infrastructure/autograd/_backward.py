"""
Backward graph nodes.

A tensor produced by a differentiable operation, with at least one operand
tracking gradients, carries a `BackwardNode`. The node keeps:

- `saved_tensors`: forward operands the gradient rules need,
- `predecessors`: one entry per operand, the operand's own node, or None when
  that operand does not track gradients,
- `saved_meta`: non-tensor metadata (operand shapes, transposed axes).

`run_backward` walks the graph reachable from a root node without recursion.
It orders the nodes so that every node comes before its predecessors, then
visits them once each in that order: the gradients that reached a node are
summed, `route` turns the total into one gradient per non-null predecessor,
and those are queued on the predecessors. The walk ends at
`AccumulateGradients` leaves, attached by `Tensor.requires_gradients()`,
which receive one gradient per incoming edge.

Nodes reference each other, never copies: a node shared by several paths is
visited once, with the sum of what every path sent it. Python reference
counting reclaims a graph once no tensor refers to it.

Gradient rules
--------------
=================  ==========================  ==========================
node               to input 0                  to input 1
=================  ==========================  ==========================
Accumulate         stored                      -
Negate             -g                          -
Add                g                           g
Subtract           g                           -g
Multiply           g * b                       g * a
MatrixMultiply     g @ B^T                     A^T @ g
Relu               g * relu_d(x)               -
Sum                g expanded to x.shape       -
Transpose          g with the axes swapped     -
=================  ==========================  ==========================

For broadcasting binary operations every routed gradient is summed back to
the shape of the operand it is routed to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

from ...domain._errors import UngradientedTensorError
from .._config import GradientAccumulation, get_config
from ._grad_mode import no_grad

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class BackwardNode:
    """
    Base backward node.

    Attributes
    ----------
    saved_tensors : tuple
        Tensors saved during the forward pass.
    predecessors : tuple[Optional[BackwardNode], ...]
        Backward nodes of the operands, in operand order.
    saved_meta : dict[str, Any]
        Non-tensor metadata required by `route`.
    """

    saved_tensors: tuple = ()
    predecessors: tuple = ()
    saved_meta: dict[str, Any] = field(default_factory=dict)

    def route(self, gradient) -> Sequence[Optional[Any]]:
        """
        Compute the gradient for each predecessor.

        Returns
        -------
        Sequence[Optional[Tensor]]
            One entry per predecessor; None where the predecessor is None.
        """
        raise NotImplementedError

    def _wants(self, i: int) -> bool:
        return i < len(self.predecessors) and self.predecessors[i] is not None

    def _input_shape(self, i: int) -> tuple[int, ...]:
        return self.saved_meta["input_shapes"][i]


@dataclass(eq=False)
class AccumulateGradients(BackwardNode):
    """
    Leaf node: stores incoming gradients.

    Under the default ``sum`` policy every incoming gradient is added into a
    single running total. Under ``append`` each incoming gradient is kept as
    a separate entry, one per graph edge that reaches the leaf in a backward
    pass. In both cases `first()` is what `Tensor.gradients()` returns.
    """

    gradients: list = field(default_factory=list)

    def accumulate(self, gradient) -> None:
        policy = get_config().gradient_accumulation
        logger.debug("accumulate (%s) into %d stored", policy.value, len(self.gradients))
        if policy is GradientAccumulation.APPEND or not self.gradients:
            self.gradients.append(gradient)
            return
        with no_grad():
            self.gradients[0] = self.gradients[0] + gradient

    def route(self, gradient) -> Sequence[Optional[Any]]:
        return ()

    def first(self):
        if not self.gradients:
            raise UngradientedTensorError("no gradient has been accumulated yet")
        return self.gradients[0]

    def clear(self) -> None:
        self.gradients.clear()


@dataclass(eq=False)
class NegateBackward(BackwardNode):
    def route(self, gradient):
        return (-gradient if self._wants(0) else None,)


@dataclass(eq=False)
class AddBackward(BackwardNode):
    def route(self, gradient):
        return (
            gradient._sum_to_shape(self._input_shape(0)) if self._wants(0) else None,
            gradient._sum_to_shape(self._input_shape(1)) if self._wants(1) else None,
        )


@dataclass(eq=False)
class SubtractBackward(BackwardNode):
    def route(self, gradient):
        return (
            gradient._sum_to_shape(self._input_shape(0)) if self._wants(0) else None,
            (-gradient)._sum_to_shape(self._input_shape(1)) if self._wants(1) else None,
        )


@dataclass(eq=False)
class MultiplyBackward(BackwardNode):
    """d(a*b) = g*b for a and g*a for b; saves (a, b)."""

    def route(self, gradient):
        a, b = self.saved_tensors
        return (
            (gradient * b)._sum_to_shape(a.shape) if self._wants(0) else None,
            (gradient * a)._sum_to_shape(b.shape) if self._wants(1) else None,
        )


@dataclass(eq=False)
class MatrixMultiplyBackward(BackwardNode):
    """
    Gradients of ``C = A @ B``: ``dA = g @ B^T`` and ``dB = A^T @ g``, where
    ^T swaps the two trailing axes. The transposes are views, so no data is
    copied before the product.
    """

    def route(self, gradient):
        a, b = self.saved_tensors
        return (
            gradient.mm(b.transpose(-2, -1)) if self._wants(0) else None,
            a.transpose(-2, -1).mm(gradient) if self._wants(1) else None,
        )


@dataclass(eq=False)
class ReluBackward(BackwardNode):
    def route(self, gradient):
        (x,) = self.saved_tensors
        return (gradient * x.relu_d() if self._wants(0) else None,)


@dataclass(eq=False)
class SumBackward(BackwardNode):
    """Every input element contributed once, so the gradient is expanded."""

    def route(self, gradient):
        (x,) = self.saved_tensors
        return (gradient._broadcast_to(x.shape) if self._wants(0) else None,)


@dataclass(eq=False)
class TransposeBackward(BackwardNode):
    def route(self, gradient):
        if not self._wants(0):
            return (None,)
        dim1, dim2 = self.saved_meta["dims"]
        return (gradient.transpose(dim1, dim2),)


def topological_order(root: BackwardNode) -> List[BackwardNode]:
    """
    Return every node reachable from `root`, each one before its predecessors.

    Depth-first post-order with an explicit stack, reversed. Each node appears
    once however many paths reach it.
    """
    order: List[BackwardNode] = []
    seen = {root}
    stack = [(root, iter(root.predecessors))]
    while stack:
        node, remaining = stack[-1]
        for pred in remaining:
            if pred is not None and pred not in seen:
                seen.add(pred)
                stack.append((pred, iter(pred.predecessors)))
                break
        else:
            stack.pop()
            order.append(node)
    order.reverse()
    return order


def run_backward(root: BackwardNode, gradient) -> None:
    """
    Propagate `gradient` (the gradient of `root`'s output) through the graph.

    Parameters
    ----------
    root : BackwardNode
        Node of the tensor `backward()` was called on.
    gradient : Tensor
        Seed gradient, shaped like that tensor.
    """
    order = topological_order(root)
    logger.debug("backward over %d nodes", len(order))
    pending: Dict[BackwardNode, list] = {root: [gradient]}
    for node in order:
        incoming = pending.pop(node, None)
        if not incoming:
            continue
        if isinstance(node, AccumulateGradients):
            for g in incoming:
                node.accumulate(g)
            continue
        logger.debug("backward %s (%d incoming)", type(node).__name__, len(incoming))
        with no_grad():
            total = incoming[0]
            for g in incoming[1:]:
                total = total + g
            routed = node.route(total)
        for pred, g in zip(node.predecessors, routed):
            if pred is not None and g is not None:
                pending.setdefault(pred, []).append(g)

