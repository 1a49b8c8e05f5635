"""
DI-specific error types with readable diagnostics.
"""

from typing import List, Optional


class DIError(Exception):
    """Base exception for DI errors."""
    pass


class ProviderNotFoundError(DIError):
    """Provider not found for requested token."""

    def __init__(
        self,
        token: str,
        requested_by: Optional[str] = None,
        candidates: Optional[List[str]] = None,
    ):
        self.token = token
        self.requested_by = requested_by
        self.candidates = candidates or []

        msg = f"No provider found for token={token}"
        if requested_by:
            msg += f"\nRequested by: {requested_by}"
        if self.candidates:
            msg += "\n\nRegistered tokens:"
            for candidate in self.candidates:
                msg += f"\n  - {candidate}"
            msg += f"\n\nSuggested fix: add a ServiceBinding for {token}"

        super().__init__(msg)


class DependencyCycleError(DIError):
    """Circular dependency detected."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle

        msg = "Detected dependency cycle:"
        for i, token in enumerate(cycle):
            arrow = " -> " if i < len(cycle) - 1 else ""
            msg += f"\n  {token}{arrow}"

        msg += "\n\nSuggested fixes:"
        msg += "\n  - Extract an interface to decouple directionally"
        msg += "\n  - Restructure dependencies to remove the cycle"

        super().__init__(msg)
