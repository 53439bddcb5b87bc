"""Segment-aware path templates.

A mount path is compiled once, at mount time, into a ``PathPattern``.
Prefix patterns match at a path-segment boundary (``/admin`` matches
``/admin`` and ``/admin/x`` but not ``/administrator``); exact patterns
must consume the whole path. Either kind may contain ``{name}`` or
``{name:conv}`` parameter segments.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from switchyard.errors import ConfigurationError

# converter name -> (regex, python type)
_CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a mount path.

    Static:  ``/users``     (is_param=False)
    Param:   ``/{id}``      (is_param=True, param_name="id")
    Typed:   ``/{id:int}``  (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


def parse_path(path: str) -> list[PathSegment]:
    """Parse a mount path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/"               -> []
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith(":") or (part.startswith("<") and part.endswith(">")):
            msg = (
                f"Invalid parameter segment {part!r} in {path!r}: "
                "use {param} or {param:int}, not :param or <param>."
            )
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in _CONVERTERS:
                msg = f"Unknown converter {param_type!r} in {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


@dataclass(frozen=True, slots=True)
class PathMatch:
    """Result of matching a path against a ``PathPattern``.

    ``matched`` is the consumed part of the path; ``residual`` is what a
    nested dispatcher sees (always starts with ``/``).
    """

    matched: str
    residual: str
    params: dict[str, Any] = field(default_factory=dict)


class PathPattern:
    """A compiled mount path.

    Usage::

        PathPattern("/admin").match("/admin/users")
        # PathMatch(matched="/admin", residual="/users", params={})

        PathPattern("/users/{id:int}", exact=True).match("/users/42")
        # PathMatch(matched="/users/42", residual="/", params={"id": 42})
    """

    __slots__ = ("_converters", "_regex", "exact", "template")

    def __init__(self, template: str, *, exact: bool = False) -> None:
        if template and not template.startswith("/"):
            msg = f"Mount path {template!r} must be empty or start with '/'"
            raise ConfigurationError(msg)
        self.template = template
        self.exact = exact

        segments = parse_path(template)
        self._converters: dict[str, type] = {}
        parts: list[str] = []
        for seg in segments:
            if seg.is_param:
                name = seg.param_name or ""
                if name in self._converters:
                    msg = f"Duplicate parameter {name!r} in {template!r}"
                    raise ConfigurationError(msg)
                pattern, self._converters[name] = _CONVERTERS[seg.param_type]
                parts.append(f"/(?P<{name}>{pattern})")
            else:
                parts.append("/" + re.escape(seg.value))

        body = "".join(parts)
        tail = "/?$" if exact else "(?=/|$)"
        self._regex: re.Pattern[str] | None = None
        if segments:
            self._regex = re.compile(f"^{body}{tail}")

    def __repr__(self) -> str:
        kind = "exact" if self.exact else "prefix"
        return f"PathPattern({self.template!r}, {kind})"

    @property
    def is_catch_all(self) -> bool:
        """True for ``""`` / ``"/"`` prefix patterns, which match every path."""
        return self._regex is None and not self.exact

    def match(self, path: str) -> PathMatch | None:
        """Match *path*, returning ``None`` when it doesn't apply."""
        if self._regex is None:
            if self.exact and path not in ("", "/"):
                return None
            return PathMatch(matched="", residual=path or "/")

        m = self._regex.match(path)
        if m is None:
            return None

        params: dict[str, Any] = {}
        for name, raw in m.groupdict().items():
            try:
                params[name] = self._converters[name](raw)
            except ValueError:
                params[name] = raw

        matched = path[: m.end()].rstrip("/") if self.exact else path[: m.end()]
        residual = path[m.end() :] or "/"
        return PathMatch(matched=matched, residual=residual, params=params)
