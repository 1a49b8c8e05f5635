"""
Route Registry

Catalog of registered controllers, their base paths, routes and parameter
bindings. Entry points look up the controllers they serve here, and the
deployment manifest is generated from it.

The registry is append-only during normal operation; ``clear()`` exists for
tests and tooling.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..metadata import (
    ControllerDescriptor,
    MetadataKey,
    ParameterDescriptor,
    RouteDescriptor,
    get_metadata,
)
from .matcher import join_paths


logger = logging.getLogger("switchyard.controller.registry")

MANIFEST_VERSION = "1.0"
DEFAULT_HANDLER_TEMPLATE = "handlers/{name}.handler"


def derive_entry_point_name(controller_name: str) -> str:
    """
    Default entry-point name for a controller class.

    >>> derive_entry_point_name("POController")
    'po'
    """
    name = controller_name
    if name.endswith("Controller") and len(name) > len("Controller"):
        name = name[: -len("Controller")]
    return name.lower()


@dataclass
class ControllerRoutes:
    """Routes of one controller, as seen by an entry point."""
    controller: type
    routes: List[RouteDescriptor]
    base_path: str


@dataclass
class Manifest:
    """
    Deployment manifest: which routes each entry point serves.

    Consumed by the deployment tooling; the key names are part of that
    contract.
    """
    entry_points: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    version: str = MANIFEST_VERSION
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "entryPoints": self.entry_points,
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class RouteRegistry:
    """
    Registry of controller classes by name.

    Registration order is preserved and decides route precedence within an
    entry point.
    """

    def __init__(self):
        self._controllers: Dict[str, type] = {}

    def register_controller(self, name: str, cls: type) -> None:
        if name in self._controllers and self._controllers[name] is not cls:
            logger.warning("Controller '%s' registered twice; last registration wins", name)
        self._controllers[name] = cls

    def controllers(self) -> List[type]:
        return list(self._controllers.values())

    def get_controller(self, name: str) -> Optional[type]:
        return self._controllers.get(name)

    def get_controller_metadata(self, cls: type) -> Optional[ControllerDescriptor]:
        return get_metadata(MetadataKey.CONTROLLER, cls)

    def get_routes(self, cls: type) -> List[RouteDescriptor]:
        return list(get_metadata(MetadataKey.ROUTES, cls, []))

    def get_params(self, cls: type, handler_name: str) -> List[ParameterDescriptor]:
        """Parameter descriptors of one handler, sorted by index."""
        params = get_metadata(MetadataKey.PARAMS, cls, [])
        return sorted(
            (param for param in params if param.handler_name == handler_name),
            key=lambda param: param.index,
        )

    def entry_point_of(self, cls: type) -> str:
        explicit = get_metadata(MetadataKey.ENTRY_POINT_NAME, cls)
        if explicit:
            return explicit
        return derive_entry_point_name(get_metadata(MetadataKey.CONTROLLER_NAME, cls, cls.__name__))

    def entry_point_names(self) -> List[str]:
        names: List[str] = []
        for cls in self._controllers.values():
            name = self.entry_point_of(cls)
            if name not in names:
                names.append(name)
        return names

    def routes_for_entry_point(self, name: str) -> List[ControllerRoutes]:
        """Controllers serving ``name``, in registration order."""
        result = []
        for cls in self._controllers.values():
            if self.entry_point_of(cls) != name:
                continue
            descriptor = self.get_controller_metadata(cls)
            result.append(ControllerRoutes(
                controller=cls,
                routes=self.get_routes(cls),
                base_path=descriptor.base_path if descriptor else "/",
            ))
        return result

    def build_manifest(self, handler_template: str = DEFAULT_HANDLER_TEMPLATE) -> Manifest:
        """
        Group every registered route by entry point.

        An entry point served by several controllers lists the routes of all
        of them; its ``controller`` field names the first one registered.
        """
        manifest = Manifest()
        for cls in self._controllers.values():
            name = self.entry_point_of(cls)
            descriptor = self.get_controller_metadata(cls)
            base_path = descriptor.base_path if descriptor else "/"
            controller_name = get_metadata(MetadataKey.CONTROLLER_NAME, cls, cls.__name__)

            entry = manifest.entry_points.setdefault(name, {
                "handler": handler_template.format(name=name),
                "controller": controller_name,
                "routes": [],
            })
            for route_descriptor in self.get_routes(cls):
                entry["routes"].append({
                    "method": route_descriptor.method.value,
                    "path": join_paths(base_path, route_descriptor.path),
                    "controller": controller_name,
                    "action": route_descriptor.handler_name,
                })
        return manifest

    def clear(self) -> None:
        self._controllers.clear()

    def __len__(self) -> int:
        return len(self._controllers)

    def __contains__(self, name: str) -> bool:
        return name in self._controllers


# Process default used by ``@controller`` when no registry is passed
route_registry = RouteRegistry()
