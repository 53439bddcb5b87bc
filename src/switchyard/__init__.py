"""Switchyard — an ordered middleware-chain HTTP dispatcher for ASGI.

Requests walk the mounted entries strictly in mount order. Any entry may
short-circuit by sending a response, continue with ``proceed()``, or
divert the rest of the walk to error handlers with ``proceed(err)``.

Basic usage::

    from switchyard import App

    app = App()

    def log(ctx, proceed):
        print(ctx.method, ctx.path)
        proceed()

    app.use(log)

    @app.get("/")
    def index(ctx, proceed):
        ctx.send("Hello, World!")

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "ContractViolation",
    "DispatchTimeout",
    "Dispatcher",
    "DoubleFinalize",
    "DoubleProceed",
    "ErrorHandler",
    "Forbidden",
    "HTTPError",
    "NormalHandler",
    "NotFound",
    "Outcome",
    "PayloadTooLarge",
    "Proceed",
    "Request",
    "RequestContext",
    "Response",
    "ResponseAlreadySent",
    "Router",
    "SwitchyardError",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "App":
        from switchyard.app import App

        return App

    if name == "AppConfig":
        from switchyard.config import AppConfig

        return AppConfig

    if name == "Request":
        from switchyard.http.request import Request

        return Request

    if name == "Response":
        from switchyard.http.response import Response

        return Response

    if name in ("RequestContext", "get_context"):
        from switchyard import context as _ctx

        return getattr(_ctx, name)

    if name in ("Dispatcher", "ErrorHandler", "NormalHandler", "Outcome", "Proceed", "Router"):
        from switchyard import routing as _routing

        return getattr(_routing, name)

    if name in __all__:
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
