"""
Manifest and route listing commands.

Both import the application module first so that its ``@controller``
classes register themselves with the route registry.
"""

import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from ...controller.matcher import join_paths
from ...controller.registry import Manifest, RouteRegistry, route_registry

logger = logging.getLogger("switchyard.cli.manifest")


def load_app_module(module: str, workspace_root: Optional[Path] = None) -> None:
    """Import ``module`` with the workspace root on ``sys.path``."""
    root = str(workspace_root or Path.cwd())
    if root not in sys.path:
        sys.path.insert(0, root)
    importlib.import_module(module)


def generate_manifest(
    output: Optional[Path] = None,
    registry: Optional[RouteRegistry] = None,
    handler_template: Optional[str] = None,
) -> Manifest:
    """
    Build the manifest and optionally write it to ``output``.

    Parent directories of ``output`` are created as needed.
    """
    registry = registry if registry is not None else route_registry
    if handler_template:
        manifest = registry.build_manifest(handler_template)
    else:
        manifest = registry.build_manifest()

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(manifest.to_json() + "\n", encoding="utf-8")
        logger.info("Manifest written to %s", output)
    return manifest


def route_rows(registry: Optional[RouteRegistry] = None) -> List[Tuple[str, str, str, str]]:
    """``(entry point, method, path, controller.action)`` rows in registration order."""
    registry = registry if registry is not None else route_registry
    rows = []
    for name in registry.entry_point_names():
        for entry in registry.routes_for_entry_point(name):
            for route in entry.routes:
                rows.append((
                    name,
                    route.method.value,
                    join_paths(entry.base_path, route.path),
                    f"{entry.controller.__name__}.{route.handler_name}",
                ))
    return rows
