"""
Explicit controller registration without decorators.

Example:
    (ControllerBuilder(POController, "/api/po", entry_point="po")
        .get("/", "list_all")
        .get("/{id}", "get_by_id", PathParam("id"))
        .post("/", "create", Body(), CurrentUser())
        .register(registry))
"""

from typing import Any, List, Optional

from ..faults import RegistrationFault, UnknownHandlerFault
from ..metadata import HttpVerb, ParameterDescriptor, RouteDescriptor
from .decorators import ParamBinding, install_controller


class ControllerBuilder:
    """Collects routes and bindings for one class, then registers it."""

    def __init__(self, cls: type, path: str = "/", *, entry_point: Optional[str] = None):
        if not isinstance(cls, type):
            raise RegistrationFault(
                code="INVALID_CONTROLLER",
                message=f"ControllerBuilder expects a class, got {type(cls).__name__}",
            )
        self.cls = cls
        self.path = path
        self.entry_point = entry_point
        self._routes: List[RouteDescriptor] = []
        self._params: List[ParameterDescriptor] = []

    def _check_handler(self, handler_name: str) -> None:
        if not callable(getattr(self.cls, handler_name, None)):
            raise UnknownHandlerFault(self.cls.__name__, handler_name)

    def _add_param(self, descriptor: ParameterDescriptor) -> None:
        # One descriptor per handler argument; identical repeats are dropped
        if descriptor not in self._params:
            self._params.append(descriptor)

    def route(
        self,
        method: str,
        path: str,
        handler_name: str,
        *bindings: ParamBinding,
        public: bool = False,
    ) -> "ControllerBuilder":
        """Declare a route; ``bindings`` map to handler arguments in order."""
        self._check_handler(handler_name)
        try:
            verb = HttpVerb(method.upper())
        except ValueError:
            raise RegistrationFault(
                code="UNSUPPORTED_METHOD",
                message=f"Unsupported HTTP method '{method}'",
                metadata={"method": method},
            ) from None

        self._routes.append(RouteDescriptor(verb, path, handler_name, public))
        for index, binding in enumerate(bindings):
            self._add_param(binding.describe(index, handler_name))
        return self

    def get(self, path: str, handler_name: str, *bindings: ParamBinding, public: bool = False) -> "ControllerBuilder":
        return self.route("GET", path, handler_name, *bindings, public=public)

    def post(self, path: str, handler_name: str, *bindings: ParamBinding, public: bool = False) -> "ControllerBuilder":
        return self.route("POST", path, handler_name, *bindings, public=public)

    def put(self, path: str, handler_name: str, *bindings: ParamBinding, public: bool = False) -> "ControllerBuilder":
        return self.route("PUT", path, handler_name, *bindings, public=public)

    def patch(self, path: str, handler_name: str, *bindings: ParamBinding, public: bool = False) -> "ControllerBuilder":
        return self.route("PATCH", path, handler_name, *bindings, public=public)

    def delete(self, path: str, handler_name: str, *bindings: ParamBinding, public: bool = False) -> "ControllerBuilder":
        return self.route("DELETE", path, handler_name, *bindings, public=public)

    def options(self, path: str, handler_name: str, *bindings: ParamBinding, public: bool = False) -> "ControllerBuilder":
        return self.route("OPTIONS", path, handler_name, *bindings, public=public)

    def bind_at(self, handler_name: str, index: int, binding: ParamBinding) -> "ControllerBuilder":
        self._check_handler(handler_name)
        self._add_param(binding.describe(index, handler_name))
        return self

    def register(self, registry: Optional[Any] = None) -> type:
        return install_controller(
            self.cls,
            self.path,
            self._routes,
            self._params,
            entry_point=self.entry_point,
            registry=registry,
        )
