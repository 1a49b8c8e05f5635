"""
Switchyard - routing and dependency-injection core for serverless HTTP functions

Complete integration of:
- Controllers: declarative routes and parameter bindings
- Router: {name} path matching, argument resolution, response envelopes
- DI: per-entry-point containers with singleton/transient scopes
- Lifecycle: cached cold starts with single-flight initialization
- Faults: structured error handling with fault domains
"""

__version__ = "0.1.0"

# ============================================================================
# Controllers
# ============================================================================

from .controller import (
    DELETE,
    GET,
    OPTIONS,
    PATCH,
    POST,
    PUT,
    Body,
    ControllerBuilder,
    CurrentUser,
    Headers,
    ParameterResolver,
    PathParam,
    QueryParam,
    RawContext,
    RawRequest,
    RequestContext,
    Router,
    RouteRegistry,
    bind,
    bind_at,
    controller,
    join_paths,
    match_path,
    route,
    route_registry,
)

# ============================================================================
# DI
# ============================================================================

from .di import (
    Container,
    ContainerFactory,
    DependencyCycleError,
    DIError,
    Inject,
    ProviderNotFoundError,
    ServiceScope,
    Token,
)

# ============================================================================
# Entry points & lifecycle
# ============================================================================

from .entrypoints import (
    SHARED_RESOURCE,
    EntryPointConfig,
    EntryPointRegistry,
    ServiceBinding,
    define_entry_point,
    entry_point_registry,
)
from .lifecycle import EntryPointManager, EntryPointState, EntryPointStatus
from .handler import (
    LambdaHandler,
    clear_all_handler_states,
    configure,
    create_handler,
    reset_handler_state,
)
from .data import SharedResourceProvider
from .singleflight import SingleFlight

# ============================================================================
# Requests, responses, faults
# ============================================================================

from .request import InboundRequest, InvocationContext
from .response import (
    CORS_HEADERS,
    DomainValue,
    Response,
    error_response,
    options_response,
    success_response,
)
from .faults import (
    ConflictFault,
    EntryPointInitFault,
    Fault,
    FaultDomain,
    ForbiddenFault,
    HttpFault,
    NotFoundFault,
    RegistrationFault,
    RouteNotFoundFault,
    Severity,
    UnauthorizedFault,
    ValidationFault,
)

# ============================================================================
# Config & logging
# ============================================================================

from .config import ConfigLoader, Settings, get_settings
from .logs import configure_logging

__all__ = [
    "__version__",
    # Controllers
    "controller", "ControllerBuilder", "route",
    "GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS",
    "PathParam", "QueryParam", "Body", "RawRequest", "RawContext", "Headers", "CurrentUser",
    "bind", "bind_at",
    "RouteRegistry", "route_registry", "Router", "ParameterResolver", "RequestContext",
    "match_path", "join_paths",
    # DI
    "Container", "ContainerFactory", "Token", "Inject", "ServiceScope",
    "DIError", "ProviderNotFoundError", "DependencyCycleError",
    # Entry points
    "EntryPointConfig", "ServiceBinding", "EntryPointRegistry", "define_entry_point",
    "entry_point_registry", "SHARED_RESOURCE",
    "EntryPointManager", "EntryPointState", "EntryPointStatus",
    "LambdaHandler", "create_handler", "configure", "reset_handler_state", "clear_all_handler_states",
    "SharedResourceProvider", "SingleFlight",
    # Requests / responses
    "InboundRequest", "InvocationContext",
    "Response", "DomainValue", "CORS_HEADERS", "success_response", "error_response", "options_response",
    # Faults
    "Fault", "FaultDomain", "Severity", "HttpFault", "ValidationFault", "UnauthorizedFault",
    "ForbiddenFault", "NotFoundFault", "ConflictFault", "RegistrationFault",
    "RouteNotFoundFault", "EntryPointInitFault",
    # Config / logging
    "Settings", "ConfigLoader", "get_settings", "configure_logging",
]
