"""Handler protocols.

A middleware or route handler is any callable matching::

    def my_mw(ctx: RequestContext, proceed: Proceed) -> None: ...
    async def my_mw(ctx: RequestContext, proceed: Proceed) -> None: ...

An error handler additionally receives the error first::

    def on_error(error: BaseException, ctx: RequestContext, proceed: Proceed) -> None: ...

No base class required. The role is declared at mount time
(``use``/``route`` vs ``error``), never inferred from the signature.
"""

from collections.abc import Awaitable
from typing import Protocol

from switchyard.context import RequestContext
from switchyard.routing.proceed import Proceed


class Middleware(Protocol):
    """Protocol for normal handlers, function or class based::

        class Timer:
            def __call__(self, ctx: RequestContext, proceed: Proceed) -> None:
                ctx.attributes["started"] = time.monotonic()
                proceed()
    """

    def __call__(self, ctx: RequestContext, proceed: Proceed) -> Awaitable[None] | None: ...


class ErrorMiddleware(Protocol):
    """Protocol for error handlers."""

    def __call__(
        self, error: BaseException, ctx: RequestContext, proceed: Proceed
    ) -> Awaitable[None] | None: ...
