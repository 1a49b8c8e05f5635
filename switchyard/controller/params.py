"""
Parameter Resolver

Builds the positional argument list for a controller method from its
parameter descriptors and the inbound request.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..metadata import ParamSource, ParameterDescriptor
from ..request import InboundRequest
from .registry import RouteRegistry, route_registry


logger = logging.getLogger("switchyard.controller.params")


@dataclass
class RequestContext:
    """
    Everything an extractor can read for one dispatch.

    Attributes:
        request: Inbound request (with principal, when authenticated)
        context: Invocation context supplied by the runtime
        path_params: Captures of the matched route pattern
    """
    request: InboundRequest
    context: Any = None
    path_params: Dict[str, str] = field(default_factory=dict)


def decode_body(request: InboundRequest) -> Any:
    """
    Decode the request body.

    Base64 transport wrapping is removed first; JSON is parsed when possible,
    otherwise the decoded text is returned as-is.
    """
    body = request.body
    if body is None or body == "":
        return None

    text = body
    if request.is_base64_encoded:
        try:
            text = base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            logger.debug("Body flagged as base64 could not be decoded; using raw text")
            text = body

    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text


class ParameterResolver:
    """
    Resolves handler arguments by parameter source.

    Arguments without a descriptor resolve to ``None``; the resolver never
    raises for missing or malformed request data.
    """

    def __init__(self, registry: Optional[RouteRegistry] = None):
        self.registry = registry if registry is not None else route_registry
        self._extractors: Dict[ParamSource, Callable[[ParameterDescriptor, RequestContext], Any]] = {
            ParamSource.PATH: self._path,
            ParamSource.QUERY: self._query,
            ParamSource.BODY: self._body,
            ParamSource.RAW_REQUEST: self._raw_request,
            ParamSource.RAW_CONTEXT: self._raw_context,
            ParamSource.HEADERS: self._headers,
            ParamSource.PRINCIPAL: self._principal,
        }

    def resolve(self, controller: Any, handler_name: str, ctx: RequestContext) -> List[Any]:
        params = self.registry.get_params(type(controller), handler_name)
        if not params:
            return []

        args: List[Any] = [None] * (max(param.index for param in params) + 1)
        for param in params:
            args[param.index] = self._extractors[param.source](param, ctx)
        return args

    def _path(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        if param.name in ctx.path_params:
            return ctx.path_params[param.name]
        return ctx.request.path_parameters.get(param.name)

    def _query(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        return ctx.request.query.get(param.name)

    def _body(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        return decode_body(ctx.request)

    def _raw_request(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        return ctx.request

    def _raw_context(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        return ctx.context

    def _headers(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        if param.name is None:
            return dict(ctx.request.headers)
        return ctx.request.header(param.name)

    def _principal(self, param: ParameterDescriptor, ctx: RequestContext) -> Any:
        return ctx.request.principal
