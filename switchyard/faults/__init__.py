"""
Switchyard Faults - structured error handling.

Every error the routing core raises or renders is a Fault: a typed
exception carrying a stable code, a message, a domain, a severity and a
public flag that decides whether the message may reach the caller.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
- Domain faults (registration, routing, entry point, HTTP)
"""

from .core import (
    DOMAIN_STATUS,
    Fault,
    FaultDomain,
    Severity,
)
from .domains import (
    ConfigFault,
    ConfigMissingFault,
    ConflictFault,
    DuplicateParameterFault,
    EntryPointInitFault,
    EntryPointNotRegisteredFault,
    ForbiddenFault,
    HttpFault,
    NotFoundFault,
    RegistrationFault,
    RouteNotFoundFault,
    UnauthorizedFault,
    UnknownHandlerFault,
    ValidationFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",
    "DOMAIN_STATUS",
    # Config
    "ConfigFault",
    "ConfigMissingFault",
    # Registration
    "RegistrationFault",
    "DuplicateParameterFault",
    "UnknownHandlerFault",
    # Routing / entry points
    "RouteNotFoundFault",
    "EntryPointNotRegisteredFault",
    "EntryPointInitFault",
    # HTTP
    "HttpFault",
    "ValidationFault",
    "UnauthorizedFault",
    "ForbiddenFault",
    "NotFoundFault",
    "ConflictFault",
]
