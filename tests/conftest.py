"""
Shared test fixtures and helpers for the Switchyard test suite.
"""

import base64
import json
import logging
from typing import Any, Dict, Optional

import pytest

from switchyard import handler as handler_module
from switchyard.controller.registry import RouteRegistry, route_registry
from switchyard.entrypoints import EntryPointRegistry, entry_point_registry
from switchyard.request import InboundRequest


# ============================================================================
# Event Helpers
# ============================================================================


def make_event(
    method: str = "GET",
    path: str = "/",
    *,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, str]] = None,
    path_parameters: Optional[Dict[str, str]] = None,
    base64_body: bool = False,
    request_id: str = "req-1",
) -> Dict[str, Any]:
    """Build an API-Gateway-style proxy event."""
    if body is not None and not isinstance(body, str):
        body = json.dumps(body)
    if base64_body and body is not None:
        body = base64.b64encode(body.encode("utf-8")).decode("ascii")
    return {
        "httpMethod": method,
        "path": path,
        "headers": headers or {},
        "queryStringParameters": query,
        "pathParameters": path_parameters,
        "body": body,
        "isBase64Encoded": base64_body,
        "requestContext": {"requestId": request_id},
    }


def make_request(method: str = "GET", path: str = "/", **kwargs: Any) -> InboundRequest:
    return InboundRequest.from_event(make_event(method, path, **kwargs))


class FakeLambdaContext:
    """Mimics the attributes of the runtime context object."""

    def __init__(self, request_id: str = "aws-req-1", function_name: str = "po-function"):
        self.aws_request_id = request_id
        self.function_name = function_name

    def get_remaining_time_in_millis(self) -> int:
        return 30000


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def registry() -> RouteRegistry:
    """Isolated route registry."""
    return RouteRegistry()


@pytest.fixture
def entry_points() -> EntryPointRegistry:
    """Isolated entry-point registry."""
    return EntryPointRegistry()


@pytest.fixture(autouse=True)
def _reset_process_defaults():
    """Keep process-wide registries, handler state and logging isolated per test."""
    yield
    route_registry.clear()
    entry_point_registry.clear()
    handler_module.reset_defaults()

    logger = logging.getLogger("switchyard")
    for h in list(logger.handlers):
        if getattr(h, "_switchyard", False):
            logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
