"""Header-token authentication.

Checks a request header against a set of known tokens or a verifier
callable. On success the resolved identity is stored in
``ctx.attributes[attribute]`` and the walk proceeds; on failure the
entry short-circuits with 403 and nothing after it runs.

Usage::

    app.use("/api", HeaderAuth(AuthConfig(tokens=frozenset({"mysecrettoken"}))))

    async def verify(token: str) -> User | None:
        return await users.by_api_token(token)

    app.use("/admin", HeaderAuth(AuthConfig(verify=verify, scheme="Bearer")))
"""

import hmac
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from switchyard._internal.invoke import invoke
from switchyard.context import RequestContext
from switchyard.errors import ConfigurationError
from switchyard.http.response import Response
from switchyard.routing.proceed import Proceed

logger = logging.getLogger("switchyard.auth")

Verifier: TypeAlias = Callable[[str], Any | Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Header authentication configuration.

    Provide ``tokens`` (static shared secrets) or ``verify`` (returns an
    identity or ``None``), not both.
    """

    tokens: frozenset[str] = frozenset()
    verify: Verifier | None = None
    header: str = "authorization"
    scheme: str | None = None  # e.g. "Bearer"; None = raw header value
    attribute: str = "user"
    status: int = 403
    message: str = "Forbidden"


class HeaderAuth:
    """Authenticate requests by header, short-circuiting on failure."""

    __slots__ = ("config",)

    def __init__(self, config: AuthConfig) -> None:
        if bool(config.tokens) == (config.verify is not None):
            msg = "AuthConfig needs exactly one of 'tokens' or 'verify'."
            raise ConfigurationError(msg)
        self.config = config

    def _credential(self, ctx: RequestContext) -> str | None:
        value = ctx.headers.get(self.config.header)
        if not value:
            return None
        if self.config.scheme is None:
            return value.strip()
        scheme, _, credential = value.partition(" ")
        if scheme.lower() != self.config.scheme.lower() or not credential:
            return None
        return credential.strip()

    async def _identify(self, credential: str) -> Any:
        cfg = self.config
        if cfg.verify is not None:
            return await invoke(cfg.verify, credential)
        for token in cfg.tokens:
            if hmac.compare_digest(token.encode(), credential.encode()):
                return token
        return None

    async def __call__(self, ctx: RequestContext, proceed: Proceed) -> None:
        credential = self._credential(ctx)
        identity = await self._identify(credential) if credential else None
        if identity is None:
            logger.info(
                "Rejected %s %s: %s",
                ctx.method,
                ctx.request.path,
                "missing credential" if credential is None else "invalid credential",
            )
            ctx.send(Response(body=self.config.message, status=self.config.status))
            return
        ctx.attributes[self.config.attribute] = identity
        proceed()
