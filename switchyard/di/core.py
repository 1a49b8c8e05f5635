"""
Core DI types and protocols.

Defines tokens, provider metadata, the resolution context and the
per-entry-point Container.
"""

import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Protocol,
    Type,
    TypeVar,
    Union,
    runtime_checkable,
)

from .errors import DependencyCycleError, ProviderNotFoundError
from .scopes import ServiceScope, coerce_scope


T = TypeVar("T")

logger = logging.getLogger("switchyard.di")

# Module-level cache: type -> "module.qualname" string
_type_key_cache: Dict[type, str] = {}


@dataclass(frozen=True)
class Token:
    """
    Named DI key.

    Tokens with the same name are the same key, so feature modules can
    declare them independently:

        class TYPES:
            PurchaseOrderService = Token("PurchaseOrderService")
    """
    name: str

    def __str__(self) -> str:
        return f"Token({self.name})"


TokenLike = Union[Token, Type, str]


def token_key(token: TokenLike) -> str:
    """Convert a token, type or string to its container key."""
    if isinstance(token, Token):
        return f"token:{token.name}"
    if isinstance(token, str):
        return token
    if isinstance(token, type):
        key = _type_key_cache.get(token)
        if key is None:
            key = f"{token.__module__}.{token.__qualname__}"
            _type_key_cache[token] = key
        return key
    # Typing generics and other hashables
    return str(token)


@dataclass(frozen=True)
class ProviderMeta:
    """Compact provider metadata, used in logs and diagnostics."""
    name: str
    token: str
    scope: ServiceScope
    tags: tuple = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "token": self.token,
            "scope": self.scope.value,
            "tags": list(self.tags),
        }


class ResolveCtx:
    """
    Context for one top-level resolution.

    Tracks the resolution stack for cycle detection and diagnostics. Nested
    resolutions share the same context.
    """
    __slots__ = ("container", "stack")

    def __init__(self, container: "Container"):
        self.container = container
        self.stack: List[str] = []

    def push(self, key: str) -> None:
        if key in self.stack:
            raise DependencyCycleError(self.stack[self.stack.index(key):] + [key])
        self.stack.append(key)

    def pop(self) -> None:
        self.stack.pop()


@runtime_checkable
class Provider(Protocol):
    """
    Provider protocol - how to instantiate a dependency.
    """

    @property
    def meta(self) -> ProviderMeta:
        ...

    async def instantiate(self, ctx: ResolveCtx) -> Any:
        ...


class Container:
    """
    DI Container - one per entry point.

    Holds one instance per singleton binding, instantiates transient
    bindings on every resolve, and carries the shared resource handle as a
    constant.
    """

    __slots__ = ("name", "_providers", "_cache")

    def __init__(self, name: str = "container"):
        self.name = name
        self._providers: Dict[str, Provider] = {}  # {key: provider}
        self._cache: Dict[str, Any] = {}  # {key: singleton instance}

    def register(self, provider: Provider, token: Optional[TokenLike] = None) -> None:
        """
        Register a provider under ``token`` (defaults to the provider's own token).

        Re-registering a key replaces the previous provider.
        """
        key = token_key(token) if token is not None else provider.meta.token
        existing = self._providers.get(key)
        if existing is not None and existing is not provider:
            logger.warning(
                "Container '%s': binding for %s overwritten (%s -> %s)",
                self.name, key, existing.meta.name, provider.meta.name,
            )
            self._cache.pop(key, None)
        self._providers[key] = provider

    def bind(
        self,
        token: TokenLike,
        implementation: Type,
        scope: Union[str, ServiceScope] = ServiceScope.SINGLETON,
    ) -> None:
        """
        Bind a token to an implementation class.

        Example:
            container.bind(TYPES.Repository, SqlRepository, "transient")
        """
        from .providers import ClassProvider
        self.register(ClassProvider(implementation, scope=coerce_scope(scope)), token)

    def bind_value(self, token: TokenLike, value: Any, name: Optional[str] = None) -> None:
        """Bind a constant under ``token``."""
        from .providers import ValueProvider
        self.register(ValueProvider(value, token, name=name))

    def is_registered(self, token: TokenLike) -> bool:
        return token_key(token) in self._providers

    def tokens(self) -> List[str]:
        return list(self._providers)

    async def resolve_async(
        self,
        token: TokenLike,
        *,
        optional: bool = False,
        ctx: Optional[ResolveCtx] = None,
    ) -> Any:
        """
        Resolve a dependency.

        Args:
            token: Token, type or string key
            optional: Return None instead of raising when nothing is bound
            ctx: Resolution context of an enclosing resolve (nested calls)

        Raises:
            ProviderNotFoundError: Nothing bound and not optional
            DependencyCycleError: Token is already being resolved
        """
        key = token_key(token)

        if key in self._cache:
            return self._cache[key]

        provider = self._providers.get(key)
        if provider is None:
            if optional:
                return None
            raise ProviderNotFoundError(
                key,
                requested_by=ctx.stack[-1] if ctx and ctx.stack else None,
                candidates=self.tokens(),
            )

        ctx = ctx or ResolveCtx(self)
        ctx.push(key)
        try:
            instance = await provider.instantiate(ctx)
        finally:
            ctx.pop()

        if provider.meta.scope is ServiceScope.SINGLETON:
            self._cache[key] = instance
        return instance

    async def warm_singletons(self) -> None:
        """Instantiate every singleton now, in registration order."""
        for key, provider in list(self._providers.items()):
            if provider.meta.scope is ServiceScope.SINGLETON and key not in self._cache:
                await self.resolve_async(key)

    def __repr__(self) -> str:
        return f"<Container {self.name!r} providers={len(self._providers)} cached={len(self._cache)}>"
