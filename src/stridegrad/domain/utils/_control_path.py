"""
Control-path dispatch: one public method, one implementation per state.

A class declares an operation once (signature plus contract docstring). Each
backend then registers its own implementation of that operation for one
state value. Registration replaces the declared method on the class with a
dispatcher that, on every call, reads the instance's `_state` and forwards
the call to the implementation registered for it:

    register = create_path_builder()

    class Kernel:
        @property
        def _state(self): ...

        def launch(self, n: int) -> None: ...

    @register(Kernel, Kernel.launch, DeviceType.CPU)
    def launch_cpu(self, n: int) -> None: ...

    @register(Kernel, Kernel.launch, DeviceType.CUDA)
    def launch_cuda(self, n: int) -> None: ...

Implementations are looked up by `(owner class name, method name, state)`.
Every builder owns a private registry, so two builders never see each
other's paths.
"""

from typing import (
    runtime_checkable,
    Any,
    Callable,
    Dict,
    Hashable,
    NamedTuple,
    Optional,
    Protocol,
    Type,
    Union,
)
from typing_extensions import ParamSpec, TypeVar
from functools import wraps

P = ParamSpec("P")
R = TypeVar("R")

TrapHook = Union[Type[BaseException], Callable[..., Any]]

_STATE_ATTRIBUTE = "_state"


@runtime_checkable
class StatefulObject(Protocol):
    """Anything exposing a hashable `_state` used to pick a control path."""

    @property
    def _state(self) -> Optional[Hashable]: ...


class PathKey(NamedTuple):
    owner: str
    method: str
    state: Hashable


def create_path_builder() -> Callable[
    [Type, Callable[P, R], Hashable, Optional[TrapHook]],
    Callable[[Callable[P, R]], Callable[P, R]],
]:
    """
    Create a control-path registration function with its own registry.

    Returns
    -------
    Callable
        ``register(cls, method, state, trap_exception=None)`` returning a
        decorator. Decorating an implementation records it for `state` and
        installs (or refreshes) the dispatcher on `cls`; the decorator
        returns the implementation unchanged.

    Notes
    -----
    When no implementation matches the instance's state:

    - with ``trap_exception=None`` a `NotImplementedError` is raised,
    - with a callable hook, ``trap_exception(method, state)`` is invoked
      first and ``trap_exception()`` is then raised (an exception class
      fits both calls),
    - with an exception instance, that instance is raised.
    """
    registry: Dict[PathKey, Callable[..., Any]] = {}

    def _missing(base: Callable, state: Any, trap_exception: Optional[TrapHook]):
        if trap_exception is None:
            return NotImplementedError(
                "Missing control path (state={!r}) for {!r}".format(
                    state, base.__qualname__
                )
            )
        if callable(trap_exception):
            trap_exception(base, state)
            return trap_exception()
        return trap_exception

    def register(
        cls: Type,
        method: Callable[P, R],
        state: Hashable,
        trap_exception: Optional[TrapHook] = None,
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """
        Build the decorator registering one control path of `cls.method`.

        Raises
        ------
        TypeError
            If `state` is not hashable.
        """
        try:
            hash(state)
        except TypeError:
            raise TypeError(
                f"The control-path state must be hashable. Got {state!r}"
            ) from None

        # `method` may already be a dispatcher when a second state registers
        base = getattr(method, "__control_path_base__", method)
        key = PathKey(cls.__name__, base.__name__, state)

        def decorator(impl: Callable[P, R]) -> Callable[P, R]:
            registry[key] = impl

            @wraps(base)
            def dispatch(self: Any, *args: P.args, **kwargs: P.kwargs) -> Any:
                if not isinstance(self, StatefulObject):
                    raise NotImplementedError(
                        f"{type(self)} is missing attribute "
                        f"{_STATE_ATTRIBUTE!r} (@property)"
                    )
                current = self._state
                found = registry.get(PathKey(key.owner, key.method, current))
                if found is None:
                    raise _missing(base, current, trap_exception)
                return found(self, *args, **kwargs)

            dispatch.__control_path_base__ = base
            setattr(cls, base.__name__, dispatch)
            return impl

        return decorator

    return register
