"""Serve an App with pounce.

Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
but we hold a live ``App`` object, so ``pounce.Server`` is used
directly with the ASGI callable.
"""

from switchyard.errors import ConfigurationError


def run_server(app: object, host: str, port: int, *, workers: int = 1, reload: bool = False) -> None:
    """Start a pounce server for *app*.

    Requires the ``server`` extra (``pip install switchyard[server]``).
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving requires pounce. Install it with: pip install switchyard[server]"
        raise ConfigurationError(msg) from exc

    config = ServerConfig(host=host, port=port, workers=workers, reload=reload)
    server = Server(config, app)
    server.run()
