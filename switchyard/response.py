"""
Response envelopes.

Every response leaves the core as ``{"statusCode", "headers", "body"}`` with
CORS headers present. Handler results are classified into a tagged union:

- ``Response``: already an envelope, passed through
- ``DomainValue``: anything else, wrapped as ``{"success": true, "data": ...}``
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Union

from .faults import Fault


CORS_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token",
    "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,OPTIONS",
    "Access-Control-Max-Age": "86400",
}

NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
}

INTERNAL_ERROR_CODE = "INTERNAL_ERROR"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


def _merge_headers(*layers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


@dataclass
class Response:
    """
    Outbound response envelope.

    Attributes:
        status_code: HTTP status code
        body: Serialized body (JSON text or empty)
        headers: Response headers
        is_base64_encoded: Body is base64 transport-encoded binary
    """
    status_code: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    is_base64_encoded: bool = False

    @classmethod
    def from_dict(cls, value: Mapping[str, Any]) -> "Response":
        body = value.get("body")
        if body is None:
            body = ""
        elif not isinstance(body, str):
            body = json.dumps(body, default=str)
        return cls(
            status_code=int(value["statusCode"]),
            body=body,
            headers=dict(value.get("headers") or {}),
            is_base64_encoded=bool(value.get("isBase64Encoded", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }
        if self.is_base64_encoded:
            result["isBase64Encoded"] = True
        return result

    def json(self) -> Any:
        """Parsed body; ``None`` for an empty body."""
        if not self.body:
            return None
        return json.loads(self.body)

    def with_default_headers(self, defaults: Mapping[str, str]) -> "Response":
        """Copy with ``defaults`` filled in where the response sets no header."""
        return replace(self, headers=_merge_headers(defaults, self.headers))


@dataclass(frozen=True)
class DomainValue:
    """Plain handler result that still needs the success envelope."""
    value: Any


HandlerResult = Union[Response, DomainValue]


def classify_result(value: Any) -> HandlerResult:
    """
    Tag a handler return value.

    ``Response`` instances and mappings carrying both ``statusCode`` and
    ``body`` are envelopes; everything else is a domain value.
    """
    if isinstance(value, (Response, DomainValue)):
        return value
    if isinstance(value, Mapping) and "statusCode" in value and "body" in value:
        return Response.from_dict(value)
    return DomainValue(value)


def success_response(
    data: Any,
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    """
    Success envelope.

    Example:
        return success_response(created, status_code=201)
    """
    return Response(
        status_code=status_code,
        body=json.dumps({"success": True, "data": data}, default=str),
        headers=_merge_headers(CORS_HEADERS, NO_CACHE_HEADERS, headers),
    )


def error_response(
    status_code: int,
    code: str,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    return Response(
        status_code=status_code,
        body=json.dumps({"success": False, "error": {"code": code, "message": message}}),
        headers=_merge_headers(CORS_HEADERS, NO_CACHE_HEADERS, headers),
    )


def options_response(headers: Optional[Mapping[str, str]] = None) -> Response:
    """CORS preflight: 204 with an empty body."""
    return Response(
        status_code=204,
        body="",
        headers=_merge_headers(CORS_HEADERS, headers),
    )


def fault_response(exc: BaseException, headers: Optional[Mapping[str, str]] = None) -> Response:
    """
    Render any exception as an error envelope.

    Public faults expose their code and message. Private faults keep their
    status but show the generic message. Other exceptions become a 500.
    """
    if isinstance(exc, Fault):
        if exc.public:
            return error_response(exc.http_status, exc.code, exc.message, headers)
        return error_response(exc.http_status, INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, headers)
    return error_response(500, INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, headers)


def as_response(result: HandlerResult, headers: Optional[Mapping[str, str]] = None) -> Response:
    """Turn a classified handler result into the outbound envelope."""
    if isinstance(result, Response):
        return result.with_default_headers(_merge_headers(CORS_HEADERS, headers))
    return success_response(result.value, headers=headers)
