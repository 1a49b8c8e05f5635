"""
Dependency Container Factory

Builds the per-entry-point container:

1. acquire the shared resource handle
2. bind it as a constant under the configured token
3. register every service binding with its scope
4. bind each controller as a singleton
5. instantiate all singletons, so constructor failures surface here

Any failing step aborts the build; no partial container is returned.
"""

import logging
import time
from typing import TYPE_CHECKING, Optional

from .core import Container
from .providers import ClassProvider
from .scopes import ServiceScope

if TYPE_CHECKING:
    from ..data import SharedResourceProvider
    from ..entrypoints import EntryPointConfig


logger = logging.getLogger("switchyard.di.factory")


class ContainerFactory:
    """
    Args:
        resources: Provider of the shared resource handle; when omitted, no
                   handle is bound
    """

    def __init__(self, resources: Optional["SharedResourceProvider"] = None):
        self.resources = resources

    async def build(self, config: "EntryPointConfig") -> Container:
        started = time.perf_counter()
        container = Container(name=config.name)

        if self.resources is not None and config.shared_resource_token is not None:
            # Errors from the data-access layer propagate unchanged
            handle = await self.resources.get()
            container.bind_value(config.shared_resource_token, handle, name=self.resources.name)

        for binding in config.bindings:
            container.bind(binding.token, binding.implementation, binding.scope)

        for controller_cls in config.controllers:
            container.register(ClassProvider(controller_cls, scope=ServiceScope.SINGLETON), controller_cls)

        await container.warm_singletons()

        logger.debug(
            "Container for '%s' built in %.1fms (%d providers)",
            config.name, (time.perf_counter() - started) * 1000, len(container.tokens()),
        )
        return container
