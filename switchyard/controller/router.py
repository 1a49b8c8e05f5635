"""
Router

Dispatches one inbound request to one controller method of an entry point:

1. CORS preflight short-circuit
2. first matching route, in registration order
3. authenticator, unless the route is public
4. controller singleton from the container
5. arguments from the Parameter Resolver
6. invoke, awaiting if needed
7. pass envelopes through, wrap everything else

Every exception is rendered into an error envelope; ``dispatch`` never
raises.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..di.core import Container
from ..faults import Fault, RouteNotFoundFault, Severity
from ..metadata import HttpVerb, RouteDescriptor
from ..request import InboundRequest
from ..response import Response, as_response, classify_result, fault_response, options_response
from .matcher import join_paths, match_path
from .params import ParameterResolver, RequestContext
from .registry import RouteRegistry, route_registry


logger = logging.getLogger("switchyard.router")

_FAULT_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


@dataclass(frozen=True)
class CompiledRoute:
    """A route with its controller and full path pattern."""
    controller: type
    route: RouteDescriptor
    pattern: str


class Router:
    """
    Per-entry-point router.

    The route table is compiled once at construction and reused for every
    request served by this entry point.
    """

    def __init__(
        self,
        entry_point: str,
        container: Container,
        *,
        registry: Optional[RouteRegistry] = None,
        resolver: Optional[ParameterResolver] = None,
        authenticator: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.entry_point = entry_point
        self.container = container
        self.registry = registry if registry is not None else route_registry
        self.resolver = resolver or ParameterResolver(self.registry)
        self.authenticator = authenticator
        self.headers = dict(headers or {})
        self.routes: List[CompiledRoute] = self._compile()

    def _compile(self) -> List[CompiledRoute]:
        compiled = []
        for entry in self.registry.routes_for_entry_point(self.entry_point):
            for route in entry.routes:
                compiled.append(CompiledRoute(
                    controller=entry.controller,
                    route=route,
                    pattern=join_paths(entry.base_path, route.path),
                ))
        logger.debug("Router '%s' compiled %d routes", self.entry_point, len(compiled))
        return compiled

    def match(self, method: str, path: str) -> Optional[Tuple[CompiledRoute, Dict[str, str]]]:
        """First route (registration order) whose verb and pattern match."""
        for compiled in self.routes:
            if compiled.route.method.value != method:
                continue
            params = match_path(compiled.pattern, path)
            if params is not None:
                return compiled, params
        return None

    async def dispatch(self, request: InboundRequest, context: Any = None) -> Response:
        try:
            found = self.match(request.method, request.path)

            if request.method == HttpVerb.OPTIONS.value and found is None:
                return options_response(self.headers)

            if found is None:
                raise RouteNotFoundFault(request.method, request.path)

            compiled, path_params = found

            if not compiled.route.public and self.authenticator is not None:
                authenticated = self.authenticator.authenticate(request)
                if inspect.isawaitable(authenticated):
                    authenticated = await authenticated
                if not isinstance(authenticated, InboundRequest):
                    raise TypeError(
                        f"{type(self.authenticator).__name__}.authenticate returned "
                        f"{type(authenticated).__name__}, expected InboundRequest"
                    )
                request = authenticated

            instance = await self.container.resolve_async(compiled.controller)
            args = self.resolver.resolve(
                instance,
                compiled.route.handler_name,
                RequestContext(request=request, context=context, path_params=path_params),
            )

            result = getattr(instance, compiled.route.handler_name)(*args)
            if inspect.isawaitable(result):
                result = await result

            return as_response(classify_result(result), self.headers)

        except Exception as exc:
            return self.render_error(exc, request)

    def render_error(self, exc: Exception, request: InboundRequest) -> Response:
        if isinstance(exc, Fault):
            logger.log(
                _FAULT_LOG_LEVELS.get(exc.severity, logging.ERROR),
                "%s %s -> %s: %s",
                request.method, request.path, exc.code, exc.message,
                extra={"fault": exc.to_dict()},
            )
        else:
            logger.exception(
                "Unhandled error in '%s' for %s %s", self.entry_point, request.method, request.path,
            )
        return fault_response(exc, self.headers)
