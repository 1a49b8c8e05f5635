"""
Metadata Store

Associates arbitrary decorations (routes, controller options, parameter
bindings) with classes and functions, keyed by ``(key, target)``.

Metadata lives on the target object itself, in a private mapping that is
never inherited: a subclass starts with no metadata of its own. The store
imposes no ordering; callers sort parameter descriptors by index.

Writers run while classes are being defined, before any request is served.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


_ATTR = "__switchyard_metadata__"


class MetadataKey(str, Enum):
    """Keys used by the controller decorators."""
    CONTROLLER = "switchyard:controller"
    ROUTES = "switchyard:routes"
    PARAMS = "switchyard:params"
    CONTROLLER_NAME = "switchyard:controller_name"
    ENTRY_POINT_NAME = "switchyard:entry_point_name"


class HttpVerb(str, Enum):
    """HTTP methods a route can be declared for."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


class ParamSource(str, Enum):
    """Where a handler argument is read from."""
    PATH = "path"
    QUERY = "query"
    BODY = "body"
    RAW_REQUEST = "raw_request"
    RAW_CONTEXT = "raw_context"
    HEADERS = "headers"
    PRINCIPAL = "principal"


@dataclass(frozen=True)
class RouteDescriptor:
    """
    A declared route on a controller method.

    Attributes:
        method: HTTP verb
        path: Path pattern relative to the controller base path; segments are
              literals or ``{name}`` placeholders
        handler_name: Name of the controller method
        public: Skip the authenticator for this route
    """
    method: HttpVerb
    path: str
    handler_name: str
    public: bool = False


@dataclass(frozen=True)
class ParameterDescriptor:
    """
    A declared binding for one handler argument.

    Attributes:
        source: Where the value comes from
        index: Positional index of the argument (``self`` excluded)
        handler_name: Name of the controller method
        name: Path/query/header name, when the source needs one
    """
    source: ParamSource
    index: int
    handler_name: str
    name: Optional[str] = None


@dataclass(frozen=True)
class ControllerDescriptor:
    """Controller-level options recorded by ``@controller``."""
    base_path: str
    controller_name: str
    entry_point: Optional[str] = None


def _storage(target: Any, create: bool) -> Optional[Dict[str, Any]]:
    store = vars(target).get(_ATTR)
    if store is None and create:
        store = {}
        setattr(target, _ATTR, store)
    return store


def define_metadata(key: str, target: Any, value: Any) -> None:
    """Set ``value`` under ``key`` on ``target``, replacing any previous value."""
    _storage(target, create=True)[key] = value


def has_metadata(key: str, target: Any) -> bool:
    store = _storage(target, create=False)
    return store is not None and key in store


def get_metadata(key: str, target: Any, default: Any = None) -> Any:
    store = _storage(target, create=False)
    if store is None:
        return default
    return store.get(key, default)


def get_metadata_array(key: str, target: Any) -> List[Any]:
    """
    Return the list stored under ``key``, creating an empty one on first read.

    The returned list is the stored object; appending to it mutates the
    target's metadata.
    """
    store = _storage(target, create=True)
    array = store.get(key)
    if array is None:
        array = []
        store[key] = array
    return array


def append_metadata(key: str, target: Any, item: Any) -> None:
    get_metadata_array(key, target).append(item)
