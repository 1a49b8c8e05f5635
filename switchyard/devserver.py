"""
Local development server.

An ASGI application that turns plain HTTP requests into proxy events and
serves them through the same ``EntryPointManager`` the deployed functions
use. ``GET /health`` reports the known entry points.

    switchyard serve --app app.main --port 3000
"""

import base64
import importlib
import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

from .controller.matcher import join_paths, match_path
from .controller.registry import RouteRegistry, route_registry
from .faults import RouteNotFoundFault
from .lifecycle import EntryPointManager
from .response import Response, fault_response


logger = logging.getLogger("switchyard.devserver")

HEALTH_PATH = "/health"


class DevServer:
    """
    ASGI app dispatching to entry points by route.

    Args:
        manager: Lifecycle manager that owns the entry points
        routes: Registry used to find which entry point serves a path
    """

    def __init__(self, manager: EntryPointManager, routes: Optional[RouteRegistry] = None):
        self.manager = manager
        self.routes = routes if routes is not None else route_registry
        self._table: Optional[List[Tuple[str, str, str]]] = None

    @property
    def table(self) -> List[Tuple[str, str, str]]:
        """``(method, pattern, entry point)`` for every registered route."""
        if self._table is None:
            table = []
            for name in self.routes.entry_point_names():
                for entry in self.routes.routes_for_entry_point(name):
                    for route in entry.routes:
                        table.append((route.method.value, join_paths(entry.base_path, route.path), name))
            self._table = table
        return self._table

    def find_entry_point(self, method: str, path: str) -> Tuple[Optional[str], Dict[str, str]]:
        fallback: Optional[str] = None
        for route_method, pattern, name in self.table:
            params = match_path(pattern, path)
            if params is None:
                continue
            if route_method == method:
                return name, params
            if fallback is None:
                fallback = name
        # Preflight goes to any entry point serving the path
        if method == "OPTIONS" and fallback is not None:
            return fallback, {}
        return None, {}

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        body = await self._read_body(receive)
        method = scope["method"].upper()
        path = scope.get("path") or "/"

        if path == HEALTH_PATH and method == "GET":
            response = Response(
                status_code=200,
                body=json.dumps({"status": "ok", "entryPoints": self.routes.entry_point_names()}),
                headers={"Content-Type": "application/json"},
            )
        else:
            name, params = self.find_entry_point(method, path)
            if name is None:
                response = fault_response(RouteNotFoundFault(method, path), self.manager.headers)
            else:
                event = build_event(scope, body, params)
                response = await self.manager.handle(name, event, None)

        await self._send(send, response)

    async def _lifespan(self, receive: Any, send: Any) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.info("Dev server serving %d routes", len(self.table))
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _read_body(self, receive: Any) -> bytes:
        chunks = []
        more = True
        while more:
            message = await receive()
            chunks.append(message.get("body", b""))
            more = message.get("more_body", False)
        return b"".join(chunks)

    async def _send(self, send: Any, response: Response) -> None:
        payload = response.body.encode("utf-8")
        if response.is_base64_encoded:
            payload = base64.b64decode(response.body)
        headers = [(key.lower().encode("latin-1"), str(value).encode("latin-1")) for key, value in response.headers.items()]
        await send({"type": "http.response.start", "status": response.status_code, "headers": headers})
        await send({"type": "http.response.body", "body": payload})


def build_event(scope: Dict[str, Any], body: bytes, path_params: Dict[str, str]) -> Dict[str, Any]:
    """Convert an ASGI HTTP scope and body into a proxy event."""
    headers = {key.decode("latin-1"): value.decode("latin-1") for key, value in scope.get("headers", [])}
    query = dict(parse_qsl(scope.get("query_string", b"").decode("latin-1"), keep_blank_values=True))

    event_body: Optional[str] = None
    is_base64 = False
    if body:
        try:
            event_body = body.decode("utf-8")
        except UnicodeDecodeError:
            event_body = base64.b64encode(body).decode("ascii")
            is_base64 = True

    client = scope.get("client") or ("127.0.0.1", 0)
    return {
        "httpMethod": scope["method"].upper(),
        "path": scope.get("path") or "/",
        "headers": headers,
        "queryStringParameters": query or None,
        "pathParameters": path_params or None,
        "body": event_body,
        "isBase64Encoded": is_base64,
        "requestContext": {
            "requestId": str(uuid.uuid4()),
            "stage": "local",
            "identity": {"sourceIp": client[0]},
        },
    }


def load_app(module: str) -> Any:
    """Import the module that declares controllers and entry points."""
    return importlib.import_module(module)


def serve(
    app_module: str,
    *,
    host: str = "127.0.0.1",
    port: int = 3000,
    manager: Optional[EntryPointManager] = None,
    log_level: str = "info",
) -> None:
    """Import ``app_module`` and serve every entry point it declares."""
    try:
        import uvicorn
    except ImportError:
        raise ImportError(
            "uvicorn is required to run the development server.\n"
            "Install it with: pip install uvicorn"
        )

    from .handler import get_manager

    load_app(app_module)
    app = DevServer(manager if manager is not None else get_manager())

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level,
        access_log=True,
    )
