"""
Entry-point declarations.

An entry point is one deployable function. Its config names the
controllers it serves and the service bindings its container needs.

Example:
    define_entry_point(
        "po",
        controllers=POController,
        bindings=[
            ServiceBinding(TYPES.PORepository, PORepository),
            ServiceBinding(TYPES.POService, POService),
        ],
    )
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type, Union

from .di.core import Token, TokenLike
from .di.scopes import ServiceScope, coerce_scope
from .faults import EntryPointNotRegisteredFault, RegistrationFault


logger = logging.getLogger("switchyard.entrypoints")

SHARED_RESOURCE = Token("SharedResource")


@dataclass(frozen=True)
class ServiceBinding:
    """Maps a token to an implementation class and a scope."""
    token: TokenLike
    implementation: Type
    scope: ServiceScope = ServiceScope.SINGLETON

    def __post_init__(self):
        object.__setattr__(self, "scope", coerce_scope(self.scope))


@dataclass(frozen=True)
class EntryPointConfig:
    """
    Declarative configuration of one entry point.

    Attributes:
        name: Entry-point name (matches the controllers' entry point)
        controllers: Controller classes served, in route-precedence order
        bindings: Service bindings registered in the container
        shared_resource_token: Token the shared resource handle is bound under
    """
    name: str
    controllers: Tuple[type, ...]
    bindings: Tuple[ServiceBinding, ...] = field(default_factory=tuple)
    shared_resource_token: Optional[TokenLike] = SHARED_RESOURCE

    def __post_init__(self):
        if not self.name:
            raise RegistrationFault(
                code="INVALID_ENTRY_POINT",
                message="Entry point name must be a non-empty string",
            )
        controllers = self.controllers
        if isinstance(controllers, type):
            controllers = (controllers,)
        controllers = tuple(controllers)
        if not controllers:
            raise RegistrationFault(
                code="INVALID_ENTRY_POINT",
                message=f"Entry point '{self.name}' declares no controllers",
            )
        object.__setattr__(self, "controllers", controllers)
        object.__setattr__(self, "bindings", tuple(self.bindings))

    @property
    def controller(self) -> type:
        return self.controllers[0]


class EntryPointRegistry:
    """Entry-point configs by name; last registration wins."""

    def __init__(self):
        self._configs: dict = {}

    def register(self, config: EntryPointConfig) -> EntryPointConfig:
        if config.name in self._configs:
            logger.warning(
                "Entry point '%s' already registered; overwriting (last registration wins)",
                config.name,
            )
        self._configs[config.name] = config
        return config

    def get(self, name: str) -> EntryPointConfig:
        try:
            return self._configs[name]
        except KeyError:
            raise EntryPointNotRegisteredFault(name, self.names()) from None

    def names(self) -> List[str]:
        return list(self._configs)

    def clear(self) -> None:
        self._configs.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._configs

    def __len__(self) -> int:
        return len(self._configs)


# Process default used by ``define_entry_point`` when no registry is passed
entry_point_registry = EntryPointRegistry()


def define_entry_point(
    name: str,
    controllers: Union[type, Sequence[type]],
    bindings: Iterable[ServiceBinding] = (),
    shared_resource_token: Optional[TokenLike] = SHARED_RESOURCE,
    *,
    registry: Optional[EntryPointRegistry] = None,
) -> EntryPointConfig:
    """Declare an entry point and register it."""
    config = EntryPointConfig(
        name=name,
        controllers=controllers,
        bindings=tuple(bindings),
        shared_resource_token=shared_resource_token,
    )
    if registry is None:
        registry = entry_point_registry
    return registry.register(config)
