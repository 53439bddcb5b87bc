"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(ctx: RequestContext, proceed: Proceed) -> None

Built-in middleware:
    RequestLogger -- One log line per request
    JSONBody -- Parse JSON bodies into ctx.attributes
    FormBody -- Parse url-encoded bodies into ctx.attributes
    HeaderAuth -- Token authentication from a request header
"""

from switchyard.middleware.auth import AuthConfig, HeaderAuth
from switchyard.middleware.builtin import BodyConfig, FormBody, JSONBody, RequestLogger
from switchyard.middleware.protocol import ErrorMiddleware, Middleware

__all__ = [
    "AuthConfig",
    "BodyConfig",
    "ErrorMiddleware",
    "FormBody",
    "HeaderAuth",
    "JSONBody",
    "Middleware",
    "RequestLogger",
]
