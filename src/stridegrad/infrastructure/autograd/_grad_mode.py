"""
Graph-recording switch.

While recording is disabled, operations still compute their results but do
not attach backward nodes. Gradient routing runs inside `no_grad()` so that
the arithmetic performed on gradients never grows the graph.
"""

from contextlib import contextmanager

_GRAD_ENABLED = True


def is_grad_enabled() -> bool:
    """Return whether backward nodes are currently recorded."""
    return _GRAD_ENABLED


@contextmanager
def no_grad():
    global _GRAD_ENABLED
    _prev = _GRAD_ENABLED
    _GRAD_ENABLED = False
    try:
        yield
    finally:
        _GRAD_ENABLED = _prev


@contextmanager
def enable_grad():
    global _GRAD_ENABLED
    _prev = _GRAD_ENABLED
    _GRAD_ENABLED = True
    try:
        yield
    finally:
        _GRAD_ENABLED = _prev
