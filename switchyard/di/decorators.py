"""
Injection marker for constructor parameters.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Inject:
    """
    Injection metadata marker.

    Usage:
        def __init__(self, db: Annotated[PrismaClient, Inject(TYPES.Database)]):
            ...
    """

    token: Optional[Any] = None
    optional: bool = False


def inject(token: Optional[Any] = None, *, optional: bool = False) -> Inject:
    """
    Create injection metadata.

    Example:
        def __init__(self, cache: Annotated[Cache, inject(optional=True)]):
            ...
    """
    return Inject(token=token, optional=optional)
