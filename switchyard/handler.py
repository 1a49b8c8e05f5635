"""
Handler factory.

``create_handler(name)`` returns the callable the serverless runtime
invokes for entry point ``name``. All handlers of a process share one
``EntryPointManager`` and one event loop, so routers and containers survive
warm invocations.

Example (handlers/po.py):
    from app import po  # registers controllers and the entry point
    from switchyard import create_handler

    handler = create_handler("po")
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from .auth import BearerAuthenticator
from .config import get_settings
from .data import SharedResourceProvider
from .di.factory import ContainerFactory
from .lifecycle import EntryPointManager
from .logs import configure_logging


logger = logging.getLogger("switchyard.handler")

_manager: Optional[EntryPointManager] = None
_loop: Optional[asyncio.AbstractEventLoop] = None


def configure(
    *,
    resources: Optional[SharedResourceProvider] = None,
    manager: Optional[EntryPointManager] = None,
    settings: Any = None,
) -> EntryPointManager:
    """
    Set up the process-wide manager.

    Either pass a ready ``manager`` or let one be built from ``settings``
    (loaded from the environment when omitted) and the shared ``resources``.
    Building from settings also installs the switchyard log handler.
    """
    global _manager
    if manager is None:
        settings = settings if settings is not None else get_settings()
        configure_logging(settings)
        authenticator = None
        if settings.jwt_secret:
            authenticator = BearerAuthenticator.from_settings(settings)
        else:
            logger.warning("No JWT secret configured; routes are served without authentication")
        manager = EntryPointManager(
            factory=ContainerFactory(resources),
            authenticator=authenticator,
            headers=settings.response_headers(),
        )
    _manager = manager
    return manager


def get_manager() -> EntryPointManager:
    if _manager is None:
        return configure()
    return _manager


def _runtime_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


class LambdaHandler:
    """
    Runtime entry for one entry point.

    ``__call__`` is the synchronous runtime signature; ``handle`` is the
    coroutine for callers that already run an event loop.
    """

    def __init__(self, name: str, manager: Optional[EntryPointManager] = None):
        self.name = name
        self._manager = manager

    @property
    def manager(self) -> EntryPointManager:
        return self._manager if self._manager is not None else get_manager()

    async def handle(self, event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
        response = await self.manager.handle(self.name, event, context)
        return response.to_dict()

    def __call__(self, event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
        return _runtime_loop().run_until_complete(self.handle(event, context))

    def __repr__(self) -> str:
        return f"<LambdaHandler {self.name!r}>"


def create_handler(name: str, *, manager: Optional[EntryPointManager] = None) -> LambdaHandler:
    return LambdaHandler(name, manager)


def reset_handler_state(name: str) -> None:
    """Drop the cached router of one entry point (tests, hot reload)."""
    get_manager().reset(name)


def clear_all_handler_states() -> None:
    get_manager().reset_all()


def reset_defaults() -> None:
    """Forget the process-wide manager and event loop."""
    global _manager, _loop
    _manager = None
    if _loop is not None and not _loop.is_closed():
        _loop.close()
    _loop = None
