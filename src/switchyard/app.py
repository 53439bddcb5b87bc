"""Switchyard application class.

Mutable during setup (mounts, routes, error handlers, lifecycle hooks).
Frozen into an immutable Dispatcher when ``run()`` or ``__call__()`` is
first invoked.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard._internal.invoke import invoke
from switchyard.config import AppConfig
from switchyard.routing.dispatcher import Dispatcher
from switchyard.routing.entry import Entry
from switchyard.routing.router import Mountable, Router
from switchyard.server.handler import handle_request

logger = logging.getLogger("switchyard.server")


class App:
    """The switchyard application: a Router plus the ASGI boundary.

    Usage::

        app = App(AppConfig(dispatch_timeout=5.0))
        app.use(RequestLogger())
        app.use("/api", HeaderAuth(AuthConfig(tokens=frozenset({"s3cret"}))))

        @app.get("/api/users")
        def users(ctx, proceed):
            ctx.send([{"id": 1}])

        @app.error
        def render(error, ctx, proceed):
            ctx.send({"error": str(error)}, status=getattr(error, "status", 500))

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the dispatcher, even when several ASGI workers
        call ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router("app")
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._dispatcher: Dispatcher | None = None

    # -- Mounting --

    def use(self, prefix_or_handler: str | Mountable, handler: Mountable | None = None) -> Entry:
        """Mount middleware for every method (see ``Router.use``)."""
        self._check_not_frozen()
        return self._router.use(prefix_or_handler, handler)

    def mount(self, prefix: str, handler: Mountable, *, method: str | None = None) -> Entry:
        """Mount a handler, Router, or Dispatcher under *prefix*."""
        self._check_not_frozen()
        return self._router.mount(prefix, handler, method=method)

    def route(
        self,
        path: str,
        handler: Callable[..., Any] | None = None,
        *,
        methods: Sequence[str] = ("GET",),
    ) -> Callable[..., Any]:
        """Register an exact-path route, as a decorator or a direct call."""
        self._check_not_frozen()
        return self._router.route(path, handler, methods=methods)

    def get(self, path: str, handler: Callable[..., Any] | None = None) -> Callable[..., Any]:
        return self.route(path, handler, methods=("GET",))

    def post(self, path: str, handler: Callable[..., Any] | None = None) -> Callable[..., Any]:
        return self.route(path, handler, methods=("POST",))

    def put(self, path: str, handler: Callable[..., Any] | None = None) -> Callable[..., Any]:
        return self.route(path, handler, methods=("PUT",))

    def patch(self, path: str, handler: Callable[..., Any] | None = None) -> Callable[..., Any]:
        return self.route(path, handler, methods=("PATCH",))

    def delete(self, path: str, handler: Callable[..., Any] | None = None) -> Callable[..., Any]:
        return self.route(path, handler, methods=("DELETE",))

    def error(
        self, handler: Callable[..., Any] | None = None, *, prefix: str = ""
    ) -> Callable[..., Any]:
        """Mount an error handler at the current position in the chain.

        Usable bare (``@app.error``), with a prefix
        (``@app.error(prefix="/api")``), or as a direct call.
        """
        self._check_not_frozen()

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            return self._router.error(func, prefix)

        if handler is not None:
            return decorator(handler)
        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce."""
        self._ensure_frozen()
        logging.basicConfig(level=self.config.log_level.upper())

        from switchyard.server.dev import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            workers=self.config.workers,
            reload=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None

        await handle_request(
            scope,
            receive,
            send,
            dispatcher=self._dispatcher,
            debug=self.config.debug,
            dispatch_timeout=self.config.dispatch_timeout,
        )

    async def startup(self) -> None:
        """Freeze the app and run startup hooks in registration order."""
        self._ensure_frozen()
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        """Run shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            await invoke(hook)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    await self.shutdown()
                except Exception as exc:
                    logger.exception("Shutdown failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    @property
    def dispatcher(self) -> Dispatcher:
        """The frozen dispatcher (freezes the app on first access)."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._dispatcher = self._router.build()
            self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise RuntimeError(msg)
