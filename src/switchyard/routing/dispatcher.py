"""The dispatcher: an immutable, ordered sequence of entries.

``dispatch`` walks the entries strictly in mount order. For each entry
that applies (error state, method, path prefix), it invokes the handler
and suspends until the handler finalizes the response or calls
``proceed``. The walk never revisits an entry and never reorders them.

Errors signalled by handlers are carried on ``ctx.error``; nothing is
thrown out of ``dispatch``. The caller maps ``Outcome.UNHANDLED`` to a
default response.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Iterable, Iterator

from switchyard.context import RequestContext
from switchyard.errors import DispatchTimeout
from switchyard.routing.entry import Entry, ErrorHandler
from switchyard.routing.pattern import PathMatch
from switchyard.routing.proceed import Proceed

logger = logging.getLogger("switchyard.dispatch")

# Handlers that proceeded but are still running; held until they finish.
_running: set[asyncio.Task[None]] = set()


class Outcome(enum.Enum):
    """Result of a walk."""

    FINALIZED = "finalized"
    UNHANDLED = "unhandled"


class Dispatcher:
    """An immutable, ordered entry sequence.

    Built by ``Router.build()``. Safe to share across tasks and threads:
    all per-request state lives on the ``RequestContext``.

    Usage::

        router = Router()
        router.use(log_request)
        router.get("/users", list_users)
        dispatcher = router.build()

        ctx = RequestContext.build("GET", "/users")
        outcome = await dispatcher.dispatch(ctx, timeout=5.0)
    """

    __slots__ = ("_entries", "name")

    def __init__(self, entries: Iterable[Entry] = (), *, name: str = "dispatcher") -> None:
        self._entries: tuple[Entry, ...] = tuple(entries)
        self.name = name

    def __repr__(self) -> str:
        return f"<Dispatcher {self.name!r} entries={len(self._entries)}>"

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    async def dispatch(self, ctx: RequestContext, *, timeout: float | None = None) -> Outcome:
        """Walk the entries for *ctx*.

        *timeout* (seconds) sets the request deadline unless the context
        already carries one. Returns ``FINALIZED`` once a handler sent a
        response, ``UNHANDLED`` when the sequence is exhausted.
        """
        if timeout is not None and ctx.deadline is None:
            ctx.set_timeout(timeout)
        return await self._walk(ctx)

    # -- Walk --

    async def _walk(self, ctx: RequestContext) -> Outcome:
        for entry in self._entries:
            if ctx.response_started:
                return Outcome.FINALIZED

            if not ctx.timed_out and ctx.deadline_passed():
                _inject_timeout(ctx)

            if not _applies(entry, ctx):
                continue
            match = entry.pattern.match(ctx.path)
            if match is None:
                continue

            if entry.is_dispatcher:
                if await self._delegate(entry, match, ctx) is Outcome.FINALIZED:
                    return Outcome.FINALIZED
                continue

            decided = await self._step(entry, match, ctx)
            if ctx.response_started:
                return Outcome.FINALIZED
            if not decided:
                logger.warning(
                    "%s did not decide after the deadline; abandoning %s %s",
                    entry.name,
                    ctx.method,
                    ctx.request.path,
                )
                return Outcome.UNHANDLED

        return Outcome.FINALIZED if ctx.response_started else Outcome.UNHANDLED

    async def _delegate(self, entry: Entry, match: PathMatch, ctx: RequestContext) -> Outcome:
        """Run a nested dispatcher against the residual path."""
        inner: Dispatcher = entry.handler  # type: ignore[assignment]
        saved = (ctx.path, ctx.mount_path, ctx.mount_params)
        ctx.path = match.residual
        ctx.mount_path = ctx.mount_path + match.matched
        ctx.mount_params = {**ctx.mount_params, **match.params}
        try:
            return await inner._walk(ctx)
        finally:
            ctx.path, ctx.mount_path, ctx.mount_params = saved

    async def _step(self, entry: Entry, match: PathMatch, ctx: RequestContext) -> bool:
        """Invoke one handler and wait for its decision.

        Returns False only when an error handler running after the
        deadline returned without deciding.
        """
        token = Proceed(ctx, entry.name)
        ctx.params = {**ctx.mount_params, **match.params}
        ctx._pending = token
        # After the deadline, error handlers run without a timer but must
        # decide before their coroutine returns.
        deadline = None if ctx.timed_out else ctx.deadline

        # The walk resumes as soon as the token is decided, even if the
        # handler keeps running after proceed().
        task = asyncio.create_task(_run_handler(entry, ctx.error, ctx, token), name=entry.name)
        waiter = asyncio.create_task(token.wait())
        try:
            async with asyncio.timeout_at(deadline):
                await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
                if not token.decided:
                    if deadline is None and ctx.timed_out:
                        return False
                    await waiter
        except TimeoutError:
            token.expire()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            if not ctx.response_started:
                _inject_timeout(ctx)
        finally:
            ctx._pending = None
            waiter.cancel()
            if not task.done():
                _running.add(task)
                task.add_done_callback(_running.discard)
        return True


async def _run_handler(
    entry: Entry, error: BaseException | None, ctx: RequestContext, token: Proceed
) -> None:
    """Run one handler; exceptions, early or late, go through the token."""
    try:
        if isinstance(entry.handler, ErrorHandler):
            assert error is not None
            await entry.handler(error, ctx, token)
        else:
            await entry.handler(ctx, token)  # type: ignore[misc]
    except Exception as exc:
        token.raised(exc)


def _applies(entry: Entry, ctx: RequestContext) -> bool:
    """Error-state and method rules; sub-dispatchers see both states."""
    if not entry.is_dispatcher and entry.is_error_handler != (ctx.error is not None):
        return False
    return entry.accepts_method(ctx.method)


def _inject_timeout(ctx: RequestContext) -> None:
    """Move *ctx* into the timeout error state. Happens at most once."""
    ctx.timed_out = True
    logger.warning(
        "%s %s exceeded its deadline; routing to error handlers",
        ctx.method,
        ctx.request.path,
    )
    ctx.error = DispatchTimeout(ctx.timeout)
