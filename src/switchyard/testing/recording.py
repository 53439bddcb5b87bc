"""Recording handlers for asserting visit order.

Usage::

    rec = Recorder()
    router.use(rec.middleware("logger"))
    router.get("/x", rec.finalizer("route"))
    router.error(rec.error_handler("render"))

    await router.build().dispatch(ctx)
    assert rec.visits == ["logger", "route"]
"""

from collections.abc import Callable
from typing import Any

from switchyard.context import RequestContext
from switchyard.routing.proceed import Proceed


class Recorder:
    """Builds handlers that append their label to ``visits`` when invoked."""

    __slots__ = ("errors_seen", "visits")

    def __init__(self) -> None:
        self.visits: list[str] = []
        self.errors_seen: list[BaseException] = []

    def middleware(self, label: str) -> Callable[[RequestContext, Proceed], None]:
        """A handler that records itself and proceeds."""

        def handler(ctx: RequestContext, proceed: Proceed) -> None:
            self.visits.append(label)
            proceed()

        handler.__qualname__ = label
        return handler

    def failing(self, label: str, error: BaseException) -> Callable[[RequestContext, Proceed], None]:
        """A handler that records itself and proceeds with *error*."""

        def handler(ctx: RequestContext, proceed: Proceed) -> None:
            self.visits.append(label)
            proceed(error)

        handler.__qualname__ = label
        return handler

    def finalizer(self, label: str, body: Any = "ok", status: int = 200) -> Callable[..., None]:
        """A handler that records itself and sends *body*."""

        def handler(ctx: RequestContext, proceed: Proceed) -> None:
            self.visits.append(label)
            ctx.send(body, status=status)

        handler.__qualname__ = label
        return handler

    def error_handler(self, label: str, *, render: bool = False) -> Callable[..., None]:
        """An error handler that records the error, then renders or proceeds."""

        def handler(error: BaseException, ctx: RequestContext, proceed: Proceed) -> None:
            self.visits.append(label)
            self.errors_seen.append(error)
            if render:
                ctx.send(str(error), status=getattr(error, "status", 500))
            else:
                proceed()

        handler.__qualname__ = label
        return handler
