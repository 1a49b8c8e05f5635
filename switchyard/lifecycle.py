"""
Entry-Point Lifecycle Manager

Caches one Router (with its container) per entry-point name for the life of
the process.

State machine per name:

    UNINITIALIZED --first request--> INITIALIZING
    INITIALIZING  --success-->       READY   (router cached)
    INITIALIZING  --failure-->       FAILED  (fault cached)
    READY / FAILED stay put until reset(name) or reset_all()

Concurrent first requests share one initialization through ``SingleFlight``.
A failed initialization is re-raised to every waiter and every later
request; the process does not retry on its own.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .controller.registry import RouteRegistry, route_registry
from .controller.router import Router
from .di.factory import ContainerFactory
from .entrypoints import EntryPointRegistry, entry_point_registry
from .faults import EntryPointInitFault
from .logs import bind_request_context, clear_request_context
from .request import InboundRequest, InvocationContext
from .response import Response, fault_response
from .singleflight import SingleFlight


logger = logging.getLogger("switchyard.lifecycle")


class EntryPointStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass
class EntryPointState:
    """Mutable per-name state; owned by the manager."""
    name: str
    status: EntryPointStatus = EntryPointStatus.UNINITIALIZED
    router: Optional[Router] = None
    init_error: Optional[EntryPointInitFault] = None
    in_flight: Optional["asyncio.Future[Router]"] = None


class EntryPointManager:
    """
    Owns entry-point states, the container factory and router construction.

    Args:
        entry_points: Where entry-point configs are looked up
        routes: Registry the routers compile their route tables from
        factory: Builds containers
        authenticator: Passed to every router (None disables auth)
        headers: Extra response headers for every router
    """

    def __init__(
        self,
        entry_points: Optional[EntryPointRegistry] = None,
        routes: Optional[RouteRegistry] = None,
        factory: Optional[ContainerFactory] = None,
        *,
        authenticator: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.entry_points = entry_points if entry_points is not None else entry_point_registry
        self.routes = routes if routes is not None else route_registry
        self.factory = factory or ContainerFactory()
        self.authenticator = authenticator
        self.headers = dict(headers or {})
        self._states: Dict[str, EntryPointState] = {}
        self._flight: SingleFlight = SingleFlight()

    def state(self, name: str) -> EntryPointState:
        """Current state (a fresh UNINITIALIZED view when nothing is cached)."""
        return self._states.get(name) or EntryPointState(name=name)

    async def get_router(self, name: str) -> Router:
        """
        Router for ``name``, initializing on first use.

        Raises:
            EntryPointInitFault: initialization failed (now or earlier)
        """
        state = self._states.get(name)
        if state is None:
            state = self._states[name] = EntryPointState(name=name)
        elif state.status is EntryPointStatus.READY:
            return state.router
        elif state.status is EntryPointStatus.FAILED:
            raise state.init_error

        future = self._flight.start(name, lambda: self._initialize(state))
        state.in_flight = future
        return await asyncio.shield(future)

    async def _initialize(self, state: EntryPointState) -> Router:
        state.status = EntryPointStatus.INITIALIZING
        started = time.perf_counter()
        logger.info("Initializing entry point '%s'", state.name)

        try:
            config = self.entry_points.get(state.name)
            container = await self.factory.build(config)
            router = Router(
                state.name,
                container,
                registry=self.routes,
                authenticator=self.authenticator,
                headers=self.headers,
            )
        except Exception as exc:
            fault = EntryPointInitFault(state.name, exc)
            state.status = EntryPointStatus.FAILED
            state.init_error = fault
            logger.error(
                "Entry point '%s' failed to initialize: %s", state.name, exc, exc_info=exc,
            )
            raise fault from exc
        finally:
            state.in_flight = None

        state.router = router
        state.status = EntryPointStatus.READY
        logger.info(
            "Entry point '%s' ready in %.1fms (%d routes)",
            state.name, (time.perf_counter() - started) * 1000, len(router.routes),
        )
        return router

    def reset(self, name: str) -> None:
        """
        Discard cached state for ``name``.

        Live shared-resource connections are left alone.
        """
        self._states.pop(name, None)
        self._flight.forget(name)

    def reset_all(self) -> None:
        self._states.clear()
        self._flight.forget_all()

    async def handle(self, name: str, event: Mapping[str, Any], context: Any = None) -> Response:
        """
        Serve one proxy event through entry point ``name``.

        Initialization failures render as 503; nothing escapes.
        """
        started = time.perf_counter()
        invocation = InvocationContext.from_runtime(context)
        token = bind_request_context(
            entry_point=name,
            request_id=invocation.request_id,
            function_name=invocation.function_name,
        )
        method, path = event.get("httpMethod"), event.get("path")
        try:
            try:
                request = InboundRequest.from_event(event)
                method, path = request.method, request.path
                router = await self.get_router(name)
                response = await router.dispatch(request, invocation)
            except EntryPointInitFault as fault:
                logger.error("Entry point '%s' unavailable: %s", name, fault.message)
                response = fault_response(fault, self.headers)
            except Exception as exc:
                logger.exception("Unhandled error serving '%s'", name)
                response = fault_response(exc, self.headers)

            logger.info(
                "%s %s -> %d in %.1fms",
                method, path, response.status_code, (time.perf_counter() - started) * 1000,
                extra={"status": response.status_code},
            )
            return response
        finally:
            clear_request_context(token)
