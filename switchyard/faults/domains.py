"""
Switchyard Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- REGISTRY faults
- ROUTING faults
- ENTRYPOINT faults
- HTTP faults raised by controller handlers
"""

from typing import Any, Optional

from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=Severity.FATAL,
            public=False,
            metadata=metadata,
        )


class ConfigMissingFault(ConfigFault):
    """Required configuration is missing."""

    def __init__(self, key: str):
        super().__init__(
            code="CONFIG_MISSING",
            message=f"Required configuration key '{key}' is missing",
            metadata={"key": key},
        )


# ============================================================================
# REGISTRY Faults
# ============================================================================

class RegistrationFault(Fault):
    """
    Raised at import time when a controller, route or parameter binding is
    declared incorrectly. Nothing can be served until the declaration is fixed.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.REGISTRY,
            severity=Severity.FATAL,
            public=False,
            metadata=metadata,
        )


class DuplicateParameterFault(RegistrationFault):
    """Two bindings target the same argument index of one handler."""

    def __init__(self, controller: str, handler: str, index: int):
        super().__init__(
            code="DUPLICATE_PARAMETER_INDEX",
            message=f"{controller}.{handler} binds argument {index} more than once",
            metadata={"controller": controller, "handler": handler, "index": index},
        )


class UnknownHandlerFault(RegistrationFault):
    """A route or binding names a member the controller does not define."""

    def __init__(self, controller: str, handler: str):
        super().__init__(
            code="UNKNOWN_HANDLER",
            message=f"{controller} has no callable member '{handler}'",
            metadata={"controller": controller, "handler": handler},
        )


# ============================================================================
# ROUTING Faults
# ============================================================================

class RouteNotFoundFault(Fault):
    """No registered route matches the request."""

    domain = FaultDomain.ROUTING
    status = 404
    public = True

    def __init__(self, method: str, path: str):
        super().__init__(
            code="ROUTE_NOT_FOUND",
            message=f"No route found for {method} {path}",
            metadata={"method": method, "path": path},
        )


# ============================================================================
# ENTRYPOINT Faults
# ============================================================================

class EntryPointNotRegisteredFault(Fault):
    """The requested entry point was never declared."""

    domain = FaultDomain.ENTRYPOINT

    def __init__(self, name: str, available: list[str]):
        super().__init__(
            code="ENTRY_POINT_NOT_REGISTERED",
            message=(
                f"Entry point '{name}' not registered. "
                f"Available entry points: {', '.join(available) or 'none'}"
            ),
            metadata={"name": name, "available": available},
        )


class EntryPointInitFault(Fault):
    """
    Cold-start initialization of an entry point failed.

    The original exception is chained as ``__cause__``. The fault is cached
    and raised again for every request until the entry point is reset.
    """

    domain = FaultDomain.ENTRYPOINT
    status = 503
    public = True

    def __init__(self, name: str, cause: BaseException):
        super().__init__(
            code="ENTRY_POINT_INIT_FAILED",
            message="Service initialization failed",
            metadata={
                "entry_point": name,
                "cause": type(cause).__name__,
                "detail": str(cause)[:500],
            },
        )
        self.entry_point = name


# ============================================================================
# HTTP Faults (raised by controller handlers)
# ============================================================================

class HttpFault(Fault):
    """
    Operational error with a client-facing status code.

    Handlers raise these to produce a specific error envelope; the message is
    always exposed to the caller.
    """

    domain = FaultDomain.FLOW
    public = True
    status = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None, **kwargs: Any):
        super().__init__(
            code=code or type(self).code,
            message=message or type(self).message,
            **kwargs,
        )


class ValidationFault(HttpFault):
    status = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class UnauthorizedFault(HttpFault):
    domain = FaultDomain.SECURITY
    status = 401
    code = "UNAUTHORIZED"
    message = "Authentication required"


class ForbiddenFault(HttpFault):
    domain = FaultDomain.SECURITY
    status = 403
    code = "FORBIDDEN"
    message = "Access denied"


class NotFoundFault(HttpFault):
    status = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class ConflictFault(HttpFault):
    status = 409
    code = "CONFLICT"
    message = "Resource already exists"
