"""Switchyard exception hierarchy.

Shared across the router, dispatcher, boundary, and middleware so every
module raises and records the same types. Errors signalled during a walk
are carried on ``RequestContext.error``; they never escape ``dispatch``.
"""

from dataclasses import dataclass


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when a mount or the app configuration is invalid.

    Raised eagerly at mount time, before any request is served.
    """


class ResponseAlreadySent(SwitchyardError):  # noqa: N818 — reads as a state, not an error
    """Raised by ``RequestContext.send`` when the response is already final."""


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Handlers pass these to ``proceed`` (or raise them). The boundary uses
    ``status``, ``detail`` and ``headers`` when no error handler renders
    the error.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """400 — the request could not be understood (e.g. a malformed body)."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class Forbidden(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """403 — the request was understood but refused."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no entry finalized the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class PayloadTooLarge(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """413 — the request body exceeds the configured limit."""

    def __init__(self, detail: str = "Request body too large") -> None:
        super().__init__(status=413, detail=detail)


class ContractViolation(HTTPError):  # noqa: N818 — conventional name for the condition
    """500 — a handler broke the proceed/finalize contract."""

    def __init__(self, detail: str = "Handler contract violation") -> None:
        super().__init__(status=500, detail=detail)


class DoubleProceed(ContractViolation):  # noqa: N818
    """``proceed`` was invoked more than once by a single handler invocation."""

    def __init__(self, handler_name: str = "handler") -> None:
        super().__init__(detail=f"{handler_name} called proceed() more than once")


class DoubleFinalize(ContractViolation):  # noqa: N818
    """``ctx.send`` was invoked after the response was already final."""

    def __init__(self, handler_name: str = "handler") -> None:
        super().__init__(detail=f"{handler_name} sent a response more than once")


class DispatchTimeout(HTTPError):  # noqa: N818 — conventional name for the condition
    """503 — no handler finalized the response before the deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        detail = "Response timeout"
        if timeout is not None:
            detail = f"Response timeout after {timeout:g}s"
        super().__init__(status=503, detail=detail)
