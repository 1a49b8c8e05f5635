"""
Provider implementations for different instantiation strategies.
"""

import inspect
from typing import Annotated, Any, Dict, Optional, Type, get_args, get_origin, get_type_hints

from .core import ProviderMeta, ResolveCtx, TokenLike, token_key
from .decorators import Inject
from .errors import DIError
from .scopes import ServiceScope


class ClassProvider:
    """
    Provider that instantiates a class by resolving constructor dependencies.

    Dependencies are read from ``__init__`` annotations: a plain type is its
    own token, ``Annotated[T, Inject(token)]`` names the token explicitly.
    Supports async initialization via an ``async_init()`` method.
    """

    __slots__ = ("_meta", "_cls", "_dependencies", "_has_async_init")

    def __init__(self, cls: Type, scope: ServiceScope = ServiceScope.SINGLETON):
        self._cls = cls
        self._dependencies = self._extract_dependencies(cls)
        self._has_async_init = hasattr(cls, "async_init")
        self._meta = ProviderMeta(
            name=cls.__name__,
            token=token_key(cls),
            scope=scope,
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    @property
    def dependencies(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._dependencies)

    async def instantiate(self, ctx: ResolveCtx) -> Any:
        """Instantiate class by resolving dependencies."""
        resolved_deps = {}
        for dep_name, dep_info in self._dependencies.items():
            resolved = await ctx.container.resolve_async(
                dep_info["token"],
                optional=dep_info["optional"],
                ctx=ctx,
            )
            if resolved is None and dep_info["optional"]:
                # Leave the constructor default in place
                continue
            resolved_deps[dep_name] = resolved

        instance = self._cls(**resolved_deps)

        if self._has_async_init:
            await instance.async_init()

        return instance

    def _extract_dependencies(self, cls: Type) -> Dict[str, Dict[str, Any]]:
        """
        Extract dependencies from the ``__init__`` signature.

        Returns:
            Dict mapping parameter names to ``{"token", "optional"}``
        """
        deps: Dict[str, Dict[str, Any]] = {}

        if cls.__init__ is object.__init__:
            return deps

        try:
            sig = inspect.signature(cls.__init__)
        except (TypeError, ValueError):
            return deps

        try:
            type_hints = get_type_hints(cls.__init__, include_extras=True)
        except Exception:
            type_hints = {}

        for param_name, param in sig.parameters.items():
            if param_name in ("self", "cls"):
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            has_default = param.default is not inspect.Parameter.empty
            annotation = type_hints.get(param_name, param.annotation)

            if annotation is inspect.Parameter.empty:
                if has_default:
                    continue
                raise DIError(
                    f"Missing type annotation for parameter '{param_name}' "
                    f"in {cls.__qualname__}.__init__"
                )

            dep_info = self._parse_annotation(annotation)
            dep_info["optional"] = dep_info.get("optional", False) or has_default
            deps[param_name] = dep_info

        return deps

    def _parse_annotation(self, annotation: Any) -> Dict[str, Any]:
        """Parse a type annotation for Inject metadata."""
        if get_origin(annotation) is Annotated:
            args = get_args(annotation)
            result: Dict[str, Any] = {"token": args[0]}
            for meta in args[1:]:
                if isinstance(meta, Inject):
                    if meta.token is not None:
                        result["token"] = meta.token
                    if meta.optional:
                        result["optional"] = True
            return result

        return {"token": annotation}


class ValueProvider:
    """Provider that returns a pre-bound constant value."""

    __slots__ = ("_meta", "_value")

    def __init__(self, value: Any, token: TokenLike, name: Optional[str] = None):
        self._value = value
        self._meta = ProviderMeta(
            name=name or "value",
            token=token_key(token),
            scope=ServiceScope.SINGLETON,
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    async def instantiate(self, ctx: ResolveCtx) -> Any:
        return self._value
