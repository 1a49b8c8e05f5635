"""
Typed views over the proxy event and the runtime invocation context.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional


def _as_dict(value: Any) -> Dict[str, Any]:
    # Gateways send null for empty maps
    if not value:
        return {}
    return dict(value)


@dataclass(frozen=True)
class InboundRequest:
    """
    One HTTP request as delivered by an API-Gateway-style proxy event.

    ``principal`` is empty until an authenticator attaches one.
    """
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    path_parameters: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    is_base64_encoded: bool = False
    request_context: Dict[str, Any] = field(default_factory=dict)
    principal: Any = None
    event: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "InboundRequest":
        """
        Build a request from a proxy event.

        Missing or null maps become empty dicts; the method is upper-cased.
        """
        return cls(
            method=str(event.get("httpMethod") or "GET").upper(),
            path=event.get("path") or "/",
            headers=_as_dict(event.get("headers")),
            query=_as_dict(event.get("queryStringParameters")),
            path_parameters=_as_dict(event.get("pathParameters")),
            body=event.get("body"),
            is_base64_encoded=bool(event.get("isBase64Encoded", False)),
            request_context=_as_dict(event.get("requestContext")),
            event=dict(event),
        )

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    @property
    def request_id(self) -> Optional[str]:
        return self.request_context.get("requestId")

    def with_principal(self, principal: Any) -> "InboundRequest":
        return replace(self, principal=principal)


@dataclass(frozen=True)
class InvocationContext:
    """Runtime context for one invocation (request id, function name, deadline)."""
    request_id: Optional[str] = None
    function_name: Optional[str] = None
    raw: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_runtime(cls, context: Any) -> "InvocationContext":
        if isinstance(context, InvocationContext):
            return context
        if context is None:
            return cls()
        return cls(
            request_id=getattr(context, "aws_request_id", None),
            function_name=getattr(context, "function_name", None),
            raw=context,
        )

    def remaining_time_ms(self) -> Optional[int]:
        getter = getattr(self.raw, "get_remaining_time_in_millis", None)
        if getter is None:
            return None
        return getter()
