"""ASGI handler — the HTTP boundary around the dispatcher.

The only component that touches raw ASGI directly. Converts the scope
to a ``Request``, creates the per-request ``RequestContext``, walks the
dispatcher, applies the default-response policy, and sends the result
back through ASGI ``send()``.
"""

import logging
from contextvars import Token

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard.context import RequestContext, context_var
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.dispatcher import Dispatcher, Outcome
from switchyard.server.errors import default_response, internal_error_response
from switchyard.server.sender import send_response

logger = logging.getLogger("switchyard.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    debug: bool,
    dispatch_timeout: float | None = None,
) -> None:
    """Process a single HTTP request through the dispatcher."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    ctx = RequestContext(request)
    token: Token[RequestContext] = context_var.set(ctx)

    try:
        outcome = await dispatcher.dispatch(ctx, timeout=dispatch_timeout)
        response: Response = (
            ctx.response
            if outcome is Outcome.FINALIZED and ctx.response is not None
            else default_response(ctx, debug)
        )
    except Exception as exc:
        response = internal_error_response(exc, ctx, debug)
    finally:
        context_var.reset(token)

    await send_response(response, send, head=request.method == "HEAD")
