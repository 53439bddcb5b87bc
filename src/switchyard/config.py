"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, dispatch_timeout=5.0)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 1

    # Development: when True, unhandled errors render their traceback.
    # Keep False in production so internal state never reaches clients.
    debug: bool = False

    # Per-request deadline in seconds (None = no deadline)
    dispatch_timeout: float | None = None

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(cls, prefix: str = "SWITCHYARD_", **overrides: Any) -> AppConfig:
        """Build a config from ``<prefix><FIELD>`` environment variables.

        ``SWITCHYARD_DEBUG=1 SWITCHYARD_DISPATCH_TIMEOUT=2.5`` yields
        ``AppConfig(debug=True, dispatch_timeout=2.5)``. Keyword
        *overrides* win over the environment.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, raw)
        values.update(overrides)
        return cls(**values)


def _coerce(name: str, raw: str) -> Any:
    """Convert an environment string to the field's type."""
    if name == "debug":
        return raw.strip().lower() in _TRUE_VALUES
    if name in ("port", "workers"):
        return int(raw)
    if name == "dispatch_timeout":
        if raw.strip().lower() in ("", "none"):
            return None
        return float(raw)
    return raw
