"""Per-request state shared by every handler in one walk.

Provides:
- ``RequestContext``: the mutable state a walk carries (attributes,
  error state, the final response).
- ``context_var`` / ``get_context()``: the current context for this task,
  set by the ASGI boundary and reset after each request.

Thread safety:
    A context is owned by exactly one walk. ``ContextVar`` is task-local
    under asyncio, so concurrent requests never see each other's state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from switchyard.errors import ResponseAlreadySent
from switchyard.http.headers import Headers
from switchyard.http.request import Request
from switchyard.http.response import Response, to_response

if TYPE_CHECKING:
    from switchyard.routing.proceed import Proceed


class RequestContext:
    """Mutable per-request state, created fresh for each request.

    ``path`` is the residual path seen by the dispatcher currently walking
    (nested dispatchers strip their mount prefix); ``request.path`` is
    always the original.

    Usage inside a handler::

        async def load_user(ctx: RequestContext, proceed: Proceed) -> None:
            ctx.attributes["user"] = await users.find(ctx.headers["x-user"])
            proceed()

        def show_user(ctx: RequestContext, proceed: Proceed) -> None:
            ctx.send({"name": ctx.attributes["user"].name})
    """

    __slots__ = (
        "_pending",
        "attributes",
        "deadline",
        "error",
        "mount_params",
        "mount_path",
        "params",
        "path",
        "request",
        "response",
        "timed_out",
        "timeout",
    )

    def __init__(self, request: Request, *, deadline: float | None = None) -> None:
        self.request = request
        self.path: str = request.path
        self.attributes: dict[str, Any] = {}
        self.params: dict[str, Any] = {}
        self.mount_path: str = ""
        self.mount_params: dict[str, Any] = {}
        self.response: Response | None = None
        self.error: BaseException | None = None
        self.deadline = deadline
        self.timeout: float | None = None
        self.timed_out = False
        self._pending: Proceed | None = None

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        *,
        deadline: float | None = None,
    ) -> RequestContext:
        """Create a context without an ASGI scope (tests, direct dispatch)."""
        request = Request(
            method=method.upper(),
            path=path,
            headers=Headers.from_dict(headers or {}),
        )
        return cls(request, deadline=deadline)

    def __repr__(self) -> str:
        state = "error" if self.error is not None else "ok"
        return f"<RequestContext {self.method} {self.path!r} {state}>"

    # -- Request views --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def headers(self) -> Headers:
        return self.request.headers

    # -- Response --

    @property
    def response_started(self) -> bool:
        """True once a handler has finalized the response."""
        return self.response is not None

    def send(self, value: Any, status: int | None = None) -> Response:
        """Finalize the response, halting the walk.

        *value* may be a ``Response``, ``str``, ``bytes``, ``dict``,
        ``list`` or ``(value, status)`` tuple.

        Raises:
            ResponseAlreadySent: If the response was already finalized.
                While the walk is still on the offending step, the request
                also moves into the ``DoubleFinalize`` error state.
        """
        if self.response is not None:
            if self._pending is not None:
                self._pending.finalized_twice()
            msg = f"Response for {self.method} {self.request.path!r} was already sent"
            raise ResponseAlreadySent(msg)
        response = to_response(value)
        if status is not None:
            response = response.with_status(status)
        self.response = response
        if self._pending is not None:
            self._pending.settle()
        return response

    # -- Deadline --

    def set_timeout(self, timeout: float) -> None:
        """Set the deadline to *timeout* seconds from now."""
        self.timeout = timeout
        self.deadline = asyncio.get_running_loop().time() + timeout

    def deadline_passed(self) -> bool:
        if self.deadline is None:
            return False
        return asyncio.get_running_loop().time() >= self.deadline


context_var: ContextVar[RequestContext] = ContextVar("switchyard_context")
"""The current request context. Set by the ASGI boundary before dispatch."""


def get_context() -> RequestContext:
    """Return the current request context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
