"""Immutable HTTP request.

Frozen metadata with async body access. Per-request mutable state lives
on ``RequestContext``; the request itself is received data that doesn't
change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

from switchyard._internal.asgi import Receive, Scope
from switchyard.errors import PayloadTooLarge
from switchyard.http.headers import Headers
from switchyard.http.query import QueryParams

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.form()``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive = _empty_receive

    # Private: mutable cache for the body (the dict is mutable, the field is not)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Full request URL (path + query string)."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    # -- Async body access --

    async def body(self, max_bytes: int | None = None) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.

        Raises:
            PayloadTooLarge: If *max_bytes* is given and the declared
                Content-Length or the bytes received exceed it. Reading
                stops as soon as the limit is passed.
        """
        if "_body" in self._cache:
            cached: bytes = self._cache["_body"]
            if max_bytes is not None and len(cached) > max_bytes:
                raise PayloadTooLarge()
            return cached

        declared = self.content_length
        if max_bytes is not None and declared is not None and declared > max_bytes:
            raise PayloadTooLarge()

        chunks: list[bytes] = []
        size = 0
        async for chunk in self.stream():
            size += len(chunk)
            if max_bytes is not None and size > max_bytes:
                raise PayloadTooLarge()
            chunks.append(chunk)
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON. Raises ``ValueError`` on malformed input."""
        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def form(self) -> QueryParams:
        """Parse an ``application/x-www-form-urlencoded`` body.

        Raises:
            ValueError: If Content-Type is not url-encoded form data.
        """
        ct = (self.content_type or FORM_CONTENT_TYPE).split(";", 1)[0].strip().lower()
        if ct != FORM_CONTENT_TYPE:
            msg = f"Cannot parse {ct!r} as form data"
            raise ValueError(msg)
        return QueryParams(await self.body())

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"] or "/",
            headers=Headers(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
