"""Built-in middleware: request logging and body parsing.

Body parsers are ordinary entries: they must be mounted before any
entry that reads the parsed value from ``ctx.attributes``.
"""

import logging
import time
from dataclasses import dataclass

from switchyard.context import RequestContext
from switchyard.errors import BadRequest, PayloadTooLarge
from switchyard.routing.proceed import Proceed

JSON_TYPES = ("application/json",)
FORM_TYPE = "application/x-www-form-urlencoded"


def _media_type(ctx: RequestContext) -> str:
    raw = ctx.headers.get("content-type") or ""
    return raw.split(";", 1)[0].strip().lower()


class RequestLogger:
    """Log one line per request, then proceed.

    Stores the start time in ``ctx.attributes["started_at"]`` so later
    handlers can measure elapsed time.
    """

    __slots__ = ("level", "logger")

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger("switchyard.access")
        self.level = level

    def __call__(self, ctx: RequestContext, proceed: Proceed) -> None:
        ctx.attributes["started_at"] = time.monotonic()
        self.logger.log(self.level, "%s request for '%s'", ctx.method, ctx.request.url)
        proceed()


@dataclass(frozen=True, slots=True)
class BodyConfig:
    """Body parser configuration."""

    attribute: str = "body"
    max_bytes: int = 1024 * 1024  # 1 MB


class JSONBody:
    """Parse ``application/json`` bodies into ``ctx.attributes[attribute]``.

    Requests with another content type pass through untouched. Malformed
    bodies divert the request with ``BadRequest``; bodies over
    ``max_bytes`` with ``PayloadTooLarge``, without reading past the limit.
    """

    __slots__ = ("config",)

    def __init__(self, config: BodyConfig | None = None) -> None:
        self.config = config or BodyConfig()

    async def __call__(self, ctx: RequestContext, proceed: Proceed) -> None:
        if _media_type(ctx) not in JSON_TYPES:
            proceed()
            return

        try:
            raw = await ctx.request.body(self.config.max_bytes)
        except PayloadTooLarge as exc:
            proceed(exc)
            return
        if not raw:
            ctx.attributes[self.config.attribute] = None
            proceed()
            return

        try:
            ctx.attributes[self.config.attribute] = await ctx.request.json()
        except ValueError:
            proceed(BadRequest("Malformed JSON body"))
            return
        proceed()


class FormBody:
    """Parse url-encoded form bodies into ``ctx.attributes[attribute]``."""

    __slots__ = ("config",)

    def __init__(self, config: BodyConfig | None = None) -> None:
        self.config = config or BodyConfig(attribute="form")

    async def __call__(self, ctx: RequestContext, proceed: Proceed) -> None:
        if _media_type(ctx) != FORM_TYPE:
            proceed()
            return

        try:
            await ctx.request.body(self.config.max_bytes)
        except PayloadTooLarge as exc:
            proceed(exc)
            return
        try:
            ctx.attributes[self.config.attribute] = await ctx.request.form()
        except (ValueError, UnicodeDecodeError):
            proceed(BadRequest("Malformed form body"))
            return
        proceed()
