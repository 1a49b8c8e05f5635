"""
Path matching for ``{name}`` route patterns (API Gateway style).

Only literal segments and whole-segment placeholders are supported; there
are no wildcards, optional segments or regex constraints.
"""

import re
from typing import Dict, Optional
from urllib.parse import unquote


_PLACEHOLDER = re.compile(r"^\{(\w+)\}$")


def split_path(path: str) -> list[str]:
    """Split on ``/`` and drop empty segments, so extra slashes are insignificant."""
    return [segment for segment in path.split("/") if segment]


def match_path(pattern: str, path: str) -> Optional[Dict[str, str]]:
    """
    Match ``path`` against ``pattern``.

    Returns the URL-decoded placeholder captures, or ``None`` when the path
    does not match. Literal segments compare case-sensitively.

    Example:
        >>> match_path("/po/{id}", "/po/42")
        {'id': '42'}
        >>> match_path("/po/{id}", "/po/42/items") is None
        True
    """
    pattern_parts = split_path(pattern)
    actual_parts = split_path(path)

    if len(pattern_parts) != len(actual_parts):
        return None

    params: Dict[str, str] = {}
    for pattern_part, actual_part in zip(pattern_parts, actual_parts):
        placeholder = _PLACEHOLDER.match(pattern_part)
        if placeholder:
            params[placeholder.group(1)] = unquote(actual_part)
        elif pattern_part != actual_part:
            return None

    return params


def join_paths(base_path: str, route_path: str) -> str:
    """
    Join a controller base path and a route path.

    ``join_paths("/api/po", "/")`` is ``"/api/po"``;
    ``join_paths("/api/po/", "{id}")`` is ``"/api/po/{id}"``.
    """
    base = base_path[:-1] if base_path.endswith("/") else base_path
    route = route_path if route_path.startswith("/") else f"/{route_path}"
    full_path = base if route == "/" else f"{base}{route}"
    return full_path or "/"


def placeholder_names(pattern: str) -> list[str]:
    """Names of the ``{name}`` placeholders in ``pattern``, in order."""
    names = []
    for segment in split_path(pattern):
        placeholder = _PLACEHOLDER.match(segment)
        if placeholder:
            names.append(placeholder.group(1))
    return names
