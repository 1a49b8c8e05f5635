"""
Switchyard DI - per-entry-point dependency containers.

Features:
- Token / type / string keys
- Singleton and transient scopes
- Constructor injection from annotations or ``Annotated[T, Inject(token)]``
- Cycle detection with a readable trace
"""

from .core import (
    Container,
    Provider,
    ProviderMeta,
    ResolveCtx,
    Token,
    token_key,
)
from .decorators import Inject, inject
from .errors import DependencyCycleError, DIError, ProviderNotFoundError
from .factory import ContainerFactory
from .providers import ClassProvider, ValueProvider
from .scopes import ServiceScope

__all__ = [
    # Core
    "Container",
    "Provider",
    "ProviderMeta",
    "ResolveCtx",
    "Token",
    "token_key",
    # Providers
    "ClassProvider",
    "ValueProvider",
    # Scopes
    "ServiceScope",
    # Injection
    "Inject",
    "inject",
    # Factory
    "ContainerFactory",
    # Errors
    "DIError",
    "ProviderNotFoundError",
    "DependencyCycleError",
]
