"""Router — the setup-time builder for a Dispatcher.

Mounts are recorded in call order while the router is open. ``build()``
freezes the router and returns an immutable ``Dispatcher``; after that
any mutation raises ``RuntimeError``.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeAlias, Union

from switchyard.errors import ConfigurationError
from switchyard.routing.dispatcher import Dispatcher
from switchyard.routing.entry import Entry, ErrorHandler, NormalHandler

Mountable: TypeAlias = Union[Callable[..., Any], NormalHandler, ErrorHandler, Dispatcher, "Router"]


def _as_handler(handler: Mountable) -> NormalHandler | ErrorHandler | Dispatcher:
    """Normalize a mountable into one of the entry handler variants."""
    if isinstance(handler, (NormalHandler, ErrorHandler, Dispatcher)):
        return handler
    if isinstance(handler, Router):
        return handler.build()
    if handler is None or not callable(handler):
        msg = f"Cannot mount {handler!r}: expected a callable, Dispatcher, or Router"
        raise ConfigurationError(msg)
    return NormalHandler(handler)


class Router:
    """Collects entries in mount order and builds a Dispatcher.

    Usage::

        api = Router("api")

        @api.get("/users/{id:int}")
        def show_user(ctx, proceed):
            ctx.send({"id": ctx.params["id"]})

        app = Router()
        app.use(log_request)
        app.use("/api", require_token)
        app.mount("/api", api)
        app.error(render_error)
        dispatcher = app.build()
    """

    __slots__ = ("_built", "_entries", "name")

    def __init__(self, name: str = "router") -> None:
        self.name = name
        self._entries: list[Entry] = []
        self._built: Dispatcher | None = None

    def __repr__(self) -> str:
        state = "built" if self._built is not None else "open"
        return f"<Router {self.name!r} {state} entries={len(self._entries)}>"

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    # -- Mounting --

    def mount(self, prefix: str, handler: Mountable, *, method: str | None = None) -> Entry:
        """Append an entry that matches *prefix* at a segment boundary."""
        return self._append(Entry(prefix=prefix, handler=_as_handler(handler), method=method))

    def use(self, prefix_or_handler: str | Mountable, handler: Mountable | None = None) -> Entry:
        """Mount middleware for every method.

        ``use(handler)`` applies to all paths; ``use("/api", handler)``
        to paths under ``/api``.
        """
        if isinstance(prefix_or_handler, str):
            if handler is None:
                msg = f"use({prefix_or_handler!r}) needs a handler"
                raise ConfigurationError(msg)
            return self.mount(prefix_or_handler, handler)
        return self.mount("", prefix_or_handler)

    def error(self, handler: Callable[..., Any], prefix: str = "") -> Callable[..., Any]:
        """Mount an error handler, called as ``handler(error, ctx, proceed)``.

        Usable as a plain call or a decorator. Returns *handler*.
        """
        wrapped = handler if isinstance(handler, ErrorHandler) else ErrorHandler(handler)
        self._append(Entry(prefix=prefix, handler=wrapped))
        return handler

    def route(
        self,
        path: str,
        handler: Callable[..., Any] | None = None,
        *,
        methods: Sequence[str] = ("GET",),
    ) -> Callable[..., Any]:
        """Mount an exact-path handler for *methods*.

        Direct form: ``router.route("/x", handler, methods=["POST"])``.
        Decorator form::

            @router.route("/items", methods=["GET", "POST"])
            def items(ctx, proceed): ...
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            target = _as_handler(func)
            for method in methods:
                self._append(Entry(prefix=path, handler=target, method=method, exact=True))
            return func

        if handler is not None:
            return decorator(handler)
        return decorator

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

    # -- Freeze --

    def build(self) -> Dispatcher:
        """Freeze the router and return its Dispatcher.

        Idempotent: later calls return the same Dispatcher.
        """
        if self._built is None:
            self._built = Dispatcher(self._entries, name=self.name)
        return self._built

    @property
    def built(self) -> bool:
        return self._built is not None

    def _append(self, entry: Entry) -> Entry:
        if self._built is not None:
            msg = f"Cannot modify router {self.name!r} after build()."
            raise RuntimeError(msg)
        self._entries.append(entry)
        return entry
