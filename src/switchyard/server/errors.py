"""Default responses for walks that end UNHANDLED.

No error state means no entry finalized the request: 404. An error
state that no error handler rendered maps to the error's status. The
``debug`` flag decides whether internal detail reaches the client.
"""

import logging
import traceback
from http import HTTPStatus

from switchyard.context import RequestContext
from switchyard.errors import HTTPError
from switchyard.http.response import Response

logger = logging.getLogger("switchyard.server")

TEXT_PLAIN = "text/plain; charset=utf-8"


def _reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"Error {status}"


def not_found_response(ctx: RequestContext) -> Response:
    """404 for a request no entry finalized."""
    logger.debug("404 %s %s — no entry finalized", ctx.method, ctx.request.path)
    return Response(body="Not Found", status=404, content_type=TEXT_PLAIN)


def http_error_response(exc: HTTPError, ctx: RequestContext, debug: bool) -> Response:
    """Render an HTTPError no error handler took care of.

    Client errors keep their detail. Server errors (5xx) only show it
    in debug mode.
    """
    logger.debug("%d %s %s — %s", exc.status, ctx.method, ctx.request.path, exc.detail)
    if exc.status >= 500 and not debug:
        detail = _reason(exc.status)
    else:
        detail = exc.detail or _reason(exc.status)

    resp = Response(body=detail, status=exc.status, content_type=TEXT_PLAIN)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


def internal_error_response(exc: BaseException, ctx: RequestContext, debug: bool) -> Response:
    """500 for an arbitrary exception. The traceback is shown only in debug mode."""
    logger.error("500 %s %s", ctx.method, ctx.request.path, exc_info=exc)
    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500, content_type=TEXT_PLAIN)
    return Response(body="Internal Server Error", status=500, content_type=TEXT_PLAIN)


def default_response(ctx: RequestContext, debug: bool) -> Response:
    """Pick the default response for an UNHANDLED walk."""
    error = ctx.error
    if error is None:
        return not_found_response(ctx)
    if isinstance(error, HTTPError):
        return http_error_response(error, ctx, debug)
    return internal_error_response(error, ctx, debug)
