"""The single-use continuation handed to every handler.

Calling ``proceed()`` resumes the walk at the next entry; calling
``proceed(err)`` also puts the request into the error state. The token
records what the handler decided and wakes the walk. A second call is a
contract violation: it is logged and turned into exactly one
``DoubleProceed`` error-state transition, never a second walk. Sending
a second response is handled the same way, as ``DoubleFinalize``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from switchyard.errors import ContractViolation, DoubleFinalize, DoubleProceed, ResponseAlreadySent

if TYPE_CHECKING:
    from switchyard.context import RequestContext

logger = logging.getLogger("switchyard.dispatch")


class Proceed:
    """Continuation token for one handler invocation."""

    __slots__ = ("_calls", "_ctx", "_decided", "_expired", "_violated", "name")

    def __init__(self, ctx: RequestContext, name: str) -> None:
        self._ctx = ctx
        self.name = name
        self._calls = 0
        self._decided = asyncio.Event()
        self._expired = False
        self._violated = False

    def __repr__(self) -> str:
        return f"<Proceed {self.name} calls={self._calls}>"

    def __call__(self, error: BaseException | None = None) -> None:
        if self._expired:
            logger.warning("%s called proceed() after its step expired; ignored", self.name)
            return

        self._calls += 1
        if self._calls > 1:
            self._double_proceed()
            return

        if error is not None:
            self._ctx.error = error
        self._decided.set()

    @property
    def called(self) -> bool:
        """True once ``proceed`` has been invoked."""
        return self._calls > 0

    @property
    def decided(self) -> bool:
        """True once the handler proceeded or the response was finalized."""
        return self._decided.is_set()

    def settle(self) -> None:
        """Mark the step decided because the response was finalized."""
        self._decided.set()

    def expire(self) -> None:
        """Refuse all further calls (the step was cancelled)."""
        self._expired = True
        self._decided.set()

    def raised(self, exc: Exception) -> None:
        """Record an exception raised by the handler.

        Before a decision this is equivalent to ``proceed(exc)``.
        Afterwards the exception still moves the request into the error
        state, unless the response is already final.
        """
        if isinstance(exc, ResponseAlreadySent) and isinstance(self._ctx.error, DoubleFinalize):
            return
        if not self.called and not self._ctx.response_started:
            self(exc)
            return
        if self._ctx.response_started:
            logger.error(
                "%s raised after the response was sent", self.name, exc_info=exc
            )
            return
        self._ctx.error = exc
        self._decided.set()

    def finalized_twice(self) -> None:
        """Turn a second ``ctx.send`` into one ``DoubleFinalize`` error state.

        The first response is discarded so error handlers can render the
        violation. A violation raised while handling one keeps its response.
        """
        ctx = self._ctx
        logger.warning(
            "%s sent a response twice for %s %s", self.name, ctx.method, ctx.request.path
        )
        if isinstance(ctx.error, DoubleFinalize):
            return
        ctx.error = DoubleFinalize(self.name)
        ctx.response = None

    async def wait(self) -> None:
        """Suspend until the handler decides (or the step is expired)."""
        await self._decided.wait()

    def _double_proceed(self) -> None:
        ctx = self._ctx
        if self._violated:
            return
        self._violated = True
        logger.warning(
            "%s called proceed() more than once for %s %s",
            self.name,
            ctx.method,
            ctx.request.path,
        )
        if ctx.response_started or isinstance(ctx.error, ContractViolation):
            return
        ctx.error = DoubleProceed(self.name)
