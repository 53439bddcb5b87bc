"""Mounted entries and the two tagged handler variants.

A handler's role is declared by wrapping it, never inferred from its
parameter count: ``NormalHandler`` runs while the request is healthy,
``ErrorHandler`` runs only once the request is in the error state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from switchyard._internal.invoke import invoke
from switchyard.errors import ConfigurationError
from switchyard.routing.pattern import PathPattern

if TYPE_CHECKING:
    from switchyard.context import RequestContext
    from switchyard.routing.dispatcher import Dispatcher
    from switchyard.routing.proceed import Proceed


def _callable_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or type(func).__name__


@dataclass(frozen=True, slots=True)
class NormalHandler:
    """A handler invoked as ``func(ctx, proceed)``. Sync or async."""

    func: Callable[..., Any]

    @property
    def name(self) -> str:
        return _callable_name(self.func)

    async def __call__(self, ctx: RequestContext, proceed: Proceed) -> None:
        await invoke(self.func, ctx, proceed)


@dataclass(frozen=True, slots=True)
class ErrorHandler:
    """A handler invoked as ``func(error, ctx, proceed)``. Sync or async.

    Only considered while the request is in the error state.
    """

    func: Callable[..., Any]

    @property
    def name(self) -> str:
        return _callable_name(self.func)

    async def __call__(self, error: BaseException, ctx: RequestContext, proceed: Proceed) -> None:
        await invoke(self.func, error, ctx, proceed)


@dataclass(frozen=True, slots=True)
class Entry:
    """One mounted unit. Immutable once created.

    ``method=None`` makes a middleware mount (any method); a method makes
    a route mount. ``exact=True`` matches the whole path instead of a
    segment-aligned prefix.
    """

    prefix: str
    handler: NormalHandler | ErrorHandler | Dispatcher
    method: str | None = None
    exact: bool = False
    pattern: PathPattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.prefix, str):
            msg = f"Mount prefix must be a string, got {type(self.prefix).__name__}"
            raise ConfigurationError(msg)
        if self.handler is None:
            msg = f"Entry for {self.prefix!r} has no handler"
            raise ConfigurationError(msg)
        if self.method is not None:
            object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "pattern", PathPattern(self.prefix, exact=self.exact))

    @property
    def is_error_handler(self) -> bool:
        return isinstance(self.handler, ErrorHandler)

    @property
    def is_dispatcher(self) -> bool:
        return not isinstance(self.handler, (NormalHandler, ErrorHandler))

    @property
    def name(self) -> str:
        return getattr(self.handler, "name", None) or type(self.handler).__name__

    def accepts_method(self, method: str) -> bool:
        """True if this entry applies to *method* (HEAD is served by GET routes)."""
        if self.method is None:
            return True
        return self.method == method or (self.method == "GET" and method == "HEAD")
