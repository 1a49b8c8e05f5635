"""
Scope definitions.
"""

from enum import Enum
from typing import Union


class ServiceScope(str, Enum):
    """Service lifetime scopes."""

    SINGLETON = "singleton"  # One instance per container
    TRANSIENT = "transient"  # New instance every resolve


def coerce_scope(scope: Union[str, ServiceScope]) -> ServiceScope:
    """Accept ``"singleton"`` / ``"transient"`` as well as the enum."""
    if isinstance(scope, ServiceScope):
        return scope
    try:
        return ServiceScope(str(scope).lower())
    except ValueError:
        raise ValueError(
            f"Unknown scope {scope!r}; expected one of {[s.value for s in ServiceScope]}"
        ) from None
