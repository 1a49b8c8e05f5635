"""
Switchyard Controllers - declaration, registry and dispatch.

Features:
- Class-based controllers registered with ``@controller``
- Method decorators (GET, POST, PUT, PATCH, DELETE, OPTIONS)
- Parameter bindings (path, query, body, headers, principal, raw request)
- Decorator-free ``ControllerBuilder``
- ``{name}`` path patterns, first registered route wins
"""

from .builder import ControllerBuilder
from .decorators import (
    DELETE,
    GET,
    OPTIONS,
    PATCH,
    POST,
    PUT,
    Body,
    CurrentUser,
    Headers,
    ParamBinding,
    PathParam,
    QueryParam,
    RawContext,
    RawRequest,
    RouteDecorator,
    bind,
    bind_at,
    controller,
    route,
)
from .matcher import join_paths, match_path
from .params import ParameterResolver, RequestContext, decode_body
from .registry import (
    ControllerRoutes,
    Manifest,
    RouteRegistry,
    derive_entry_point_name,
    route_registry,
)
from .router import CompiledRoute, Router

__all__ = [
    # Declaration
    "controller",
    "ControllerBuilder",
    "RouteDecorator",
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "route",
    # Parameters
    "ParamBinding",
    "PathParam",
    "QueryParam",
    "Body",
    "RawRequest",
    "RawContext",
    "Headers",
    "CurrentUser",
    "bind",
    "bind_at",
    # Registry
    "RouteRegistry",
    "ControllerRoutes",
    "Manifest",
    "route_registry",
    "derive_entry_point_name",
    # Matching / resolution
    "match_path",
    "join_paths",
    "ParameterResolver",
    "RequestContext",
    "decode_body",
    # Dispatch
    "Router",
    "CompiledRoute",
]
