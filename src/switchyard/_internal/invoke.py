"""Invoke helpers — call sync or async handlers uniformly.

Handlers, error handlers and lifespan hooks can be ``def`` or
``async def``. Any code that calls a user-provided callable goes through
``invoke`` so the sync/async check lives in exactly one place.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        def log(ctx, proceed):
            print(ctx.path)
            proceed()

        async def load_user(ctx, proceed):
            ctx.attributes["user"] = await users.get(ctx.headers["x-user"])
            proceed()
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
