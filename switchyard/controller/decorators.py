"""
Controller Decorators

Class, method and parameter declarations for controllers.

Method decorators only attach metadata to the function. ``@controller``
collects that metadata from the class body, validates it, stores it on the
class and registers the class with a route registry. Everything runs at
class-definition time, before any request is served.

Example:
    @controller("/api/po", entry_point="po")
    class POController:
        def __init__(self, service: Annotated[POService, Inject(TYPES.POService)]):
            self.service = service

        @GET("/{id}")
        @bind(PathParam("id"))
        async def get_by_id(self, id):
            return await self.service.get(id)

        @POST("/")
        async def create(self, data: Annotated[dict, Body()], user: Annotated[dict, CurrentUser()]):
            return await self.service.create(data, user)
"""

import inspect
import logging
from typing import Annotated, Any, Callable, Dict, Iterable, List, Optional, TypeVar, Union, get_args, get_origin, get_type_hints

from ..faults import DuplicateParameterFault, RegistrationFault
from ..metadata import (
    ControllerDescriptor,
    HttpVerb,
    MetadataKey,
    ParamSource,
    ParameterDescriptor,
    RouteDescriptor,
    append_metadata,
    define_metadata,
    get_metadata,
    get_metadata_array,
)
from .matcher import join_paths, placeholder_names


F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger("switchyard.controller")


# ============================================================================
# Parameter bindings
# ============================================================================

class ParamBinding:
    """
    Declares where one handler argument comes from.

    Used with ``@bind(...)``, ``@bind_at(index, ...)`` or as
    ``Annotated[T, binding]`` metadata on the handler parameter.
    """

    __slots__ = ("source", "name")

    def __init__(self, source: ParamSource, name: Optional[str] = None):
        self.source = source
        self.name = name

    def describe(self, index: int, handler_name: str) -> ParameterDescriptor:
        return ParameterDescriptor(
            source=self.source,
            index=index,
            handler_name=handler_name,
            name=self.name,
        )

    def __repr__(self) -> str:
        if self.name is None:
            return f"ParamBinding({self.source.value})"
        return f"ParamBinding({self.source.value}, {self.name!r})"


def PathParam(name: str) -> ParamBinding:
    """Value of the ``{name}`` placeholder in the matched route."""
    return ParamBinding(ParamSource.PATH, name)


def QueryParam(name: str) -> ParamBinding:
    """Single query-string value, uncoerced."""
    return ParamBinding(ParamSource.QUERY, name)


def Body() -> ParamBinding:
    """Parsed JSON body, or the raw text when it is not JSON."""
    return ParamBinding(ParamSource.BODY)


def RawRequest() -> ParamBinding:
    """The full ``InboundRequest``."""
    return ParamBinding(ParamSource.RAW_REQUEST)


def RawContext() -> ParamBinding:
    """The invocation context supplied by the runtime."""
    return ParamBinding(ParamSource.RAW_CONTEXT)


def Headers(name: Optional[str] = None) -> ParamBinding:
    """One header (case-insensitive) or the whole header map."""
    return ParamBinding(ParamSource.HEADERS, name)


def CurrentUser() -> ParamBinding:
    """Principal attached by the authenticator, or ``None``."""
    return ParamBinding(ParamSource.PRINCIPAL)


def bind(*bindings: ParamBinding) -> Callable[[F], F]:
    """
    Bind handler arguments in order: the first binding is argument 0.

    Example:
        @PUT("/{id}")
        @bind(PathParam("id"), Body(), CurrentUser())
        async def update(self, id, data, user): ...
    """
    def decorator(func: F) -> F:
        for index, binding in enumerate(bindings):
            append_metadata(MetadataKey.PARAMS, func, binding.describe(index, func.__name__))
        return func
    return decorator


def bind_at(index: int, binding: ParamBinding) -> Callable[[F], F]:
    """Bind a single argument at an explicit index."""
    if index < 0:
        raise RegistrationFault(
            code="INVALID_PARAMETER_INDEX",
            message=f"Parameter index must be >= 0, got {index}",
            metadata={"index": index},
        )

    def decorator(func: F) -> F:
        append_metadata(MetadataKey.PARAMS, func, binding.describe(index, func.__name__))
        return func
    return decorator


# ============================================================================
# Route decorators
# ============================================================================

class RouteDecorator:
    """
    Base route decorator.

    Attaches a RouteDescriptor to the decorated method.
    """

    method: Optional[HttpVerb] = None

    def __init__(self, path: str = "/", *, public: bool = False):
        """
        Args:
            path: Path pattern relative to the controller base path,
                  e.g. "/", "/{id}", "/{id}/items"
            public: Serve the route without running the authenticator
        """
        if not isinstance(path, str):
            raise RegistrationFault(
                code="INVALID_ROUTE_PATH",
                message=f"Route path must be a string, got {type(path).__name__}",
            )
        self.path = path
        self.public = public

    def __call__(self, func: F) -> F:
        if not callable(func):
            raise RegistrationFault(
                code="INVALID_ROUTE_TARGET",
                message=f"@{self.method.value} can only decorate callables, got {type(func).__name__}",
            )

        append_metadata(
            MetadataKey.ROUTES,
            func,
            RouteDescriptor(
                method=self.method,
                path=self.path,
                handler_name=func.__name__,
                public=self.public,
            ),
        )
        return func


class GET(RouteDecorator):
    """GET request decorator."""
    method = HttpVerb.GET


class POST(RouteDecorator):
    """POST request decorator."""
    method = HttpVerb.POST


class PUT(RouteDecorator):
    """PUT request decorator."""
    method = HttpVerb.PUT


class PATCH(RouteDecorator):
    """PATCH request decorator."""
    method = HttpVerb.PATCH


class DELETE(RouteDecorator):
    """DELETE request decorator."""
    method = HttpVerb.DELETE


class OPTIONS(RouteDecorator):
    """OPTIONS request decorator (custom CORS handling)."""
    method = HttpVerb.OPTIONS


_DECORATORS = {
    HttpVerb.GET: GET,
    HttpVerb.POST: POST,
    HttpVerb.PUT: PUT,
    HttpVerb.PATCH: PATCH,
    HttpVerb.DELETE: DELETE,
    HttpVerb.OPTIONS: OPTIONS,
}


def route(
    method: Union[str, List[str]],
    path: str = "/",
    *,
    public: bool = False,
) -> Callable[[F], F]:
    """
    Generic route decorator.

    Example:
        @route(["GET", "HEAD"], "/status")
        async def status(self): ...
    """
    methods = [method] if isinstance(method, str) else method

    def decorator(func: F) -> F:
        for http_method in methods:
            try:
                verb = HttpVerb(http_method.upper())
            except ValueError:
                raise RegistrationFault(
                    code="UNSUPPORTED_METHOD",
                    message=f"Unsupported HTTP method '{http_method}'",
                    metadata={"method": http_method},
                ) from None
            func = _DECORATORS[verb](path, public=public)(func)
        return func

    return decorator


# ============================================================================
# Controller
# ============================================================================

def _annotated_bindings(func: Callable) -> List[ParameterDescriptor]:
    """Collect ``Annotated[T, ParamBinding]`` declarations from a handler signature."""
    try:
        hints = get_type_hints(func, include_extras=True)
    except Exception:
        hints = getattr(func, "__annotations__", {})

    try:
        parameters = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return []

    descriptors = []
    # Argument indices exclude ``self``
    for index, param in enumerate(parameters[1:]):
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, param.annotation)
        if get_origin(annotation) is not Annotated:
            continue
        for extra in get_args(annotation)[1:]:
            if isinstance(extra, ParamBinding):
                descriptors.append(extra.describe(index, func.__name__))
    return descriptors


def _collect_handlers(cls: type) -> Dict[str, Callable]:
    """Route-carrying functions of ``cls`` and its bases, in definition order."""
    handlers: Dict[str, Callable] = {}
    for klass in reversed(cls.__mro__[:-1]):
        for name, member in vars(klass).items():
            func = inspect.unwrap(member) if callable(member) else member
            if callable(func) and get_metadata(MetadataKey.ROUTES, func):
                handlers[name] = func
    return handlers


def install_controller(
    cls: type,
    base_path: str,
    routes: Iterable[RouteDescriptor],
    params: Iterable[ParameterDescriptor],
    *,
    entry_point: Optional[str] = None,
    registry: Optional[Any] = None,
) -> type:
    """
    Validate declarations, store them on ``cls`` and register the controller.

    Shared by ``@controller`` and ``ControllerBuilder``.

    Raises:
        RegistrationFault: invalid base path
        DuplicateParameterFault: two bindings share an index on one handler,
            counting bindings stored by an earlier registration of ``cls``
    """
    if not isinstance(base_path, str):
        raise RegistrationFault(
            code="INVALID_CONTROLLER_PATH",
            message=f"{cls.__name__}: controller path must be a string, got {type(base_path).__name__}",
        )

    routes = list(routes)
    params = list(params)

    seen = {(p.handler_name, p.index) for p in get_metadata(MetadataKey.PARAMS, cls, [])}
    for param in params:
        key = (param.handler_name, param.index)
        if key in seen:
            raise DuplicateParameterFault(cls.__name__, param.handler_name, param.index)
        seen.add(key)

    for route_descriptor in routes:
        captures = placeholder_names(join_paths(base_path, route_descriptor.path))
        for param in params:
            if (
                param.handler_name == route_descriptor.handler_name
                and param.source is ParamSource.PATH
                and param.name not in captures
            ):
                logger.warning(
                    "%s.%s binds path parameter '%s' but %s %s has no such placeholder",
                    cls.__name__, param.handler_name, param.name,
                    route_descriptor.method.value, route_descriptor.path,
                )

    descriptor = ControllerDescriptor(
        base_path=base_path or "/",
        controller_name=cls.__name__,
        entry_point=entry_point,
    )
    define_metadata(MetadataKey.CONTROLLER, cls, descriptor)
    define_metadata(MetadataKey.CONTROLLER_NAME, cls, cls.__name__)
    if entry_point is not None:
        define_metadata(MetadataKey.ENTRY_POINT_NAME, cls, entry_point)

    stored_routes = get_metadata_array(MetadataKey.ROUTES, cls)
    stored_routes.extend(routes)
    stored_params = get_metadata_array(MetadataKey.PARAMS, cls)
    stored_params.extend(params)

    if registry is None:
        from .registry import route_registry as registry
    registry.register_controller(cls.__name__, cls)
    return cls


def controller(
    path: str = "/",
    entry_point: Optional[str] = None,
    *,
    registry: Optional[Any] = None,
) -> Callable[[type], type]:
    """
    Mark a class as a route controller.

    Args:
        path: Base path for every route of the controller
        entry_point: Entry point serving the controller; defaults to the
                     class name without its "Controller" suffix, lower-cased
        registry: RouteRegistry to register with (process default if omitted)

    Example:
        @controller("/api/po", entry_point="po")
        class POController: ...
    """
    def decorator(cls: type) -> type:
        if not isinstance(cls, type):
            raise RegistrationFault(
                code="INVALID_CONTROLLER",
                message=f"@controller can only decorate classes, got {type(cls).__name__}",
            )

        routes: List[RouteDescriptor] = []
        params: List[ParameterDescriptor] = []
        for func in _collect_handlers(cls).values():
            routes.extend(get_metadata(MetadataKey.ROUTES, func, []))
            params.extend(get_metadata(MetadataKey.PARAMS, func, []))
            params.extend(_annotated_bindings(func))

        return install_controller(
            cls,
            path,
            routes,
            params,
            entry_point=entry_point,
            registry=registry,
        )

    return decorator
