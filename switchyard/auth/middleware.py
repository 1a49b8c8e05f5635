"""
Bearer-token authenticator.

Runs before the router invokes a non-public route. On success the verified
claims are attached to the request as its principal; otherwise an
``UnauthorizedFault`` short-circuits the dispatch with a 401.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from ..faults import UnauthorizedFault
from ..request import InboundRequest
from .tokens import TokenConfig, TokenError, verify_access_token


logger = logging.getLogger("switchyard.auth")


@runtime_checkable
class Authenticator(Protocol):
    """Anything that turns a request into an authenticated request or raises."""

    async def authenticate(self, request: InboundRequest) -> InboundRequest:
        ...


def extract_bearer_token(request: InboundRequest) -> str | None:
    header = request.header("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class BearerAuthenticator:
    """
    Verifies ``Authorization: Bearer <token>`` headers.

    Example:
        authenticator = BearerAuthenticator(TokenConfig(secret=settings.jwt_secret))
    """

    def __init__(self, config: TokenConfig):
        self.config = config

    @classmethod
    def from_settings(cls, settings: Any) -> "BearerAuthenticator":
        return cls(TokenConfig(secret=settings.jwt_secret, expires_in=settings.jwt_expires_in))

    async def authenticate(self, request: InboundRequest) -> InboundRequest:
        token = extract_bearer_token(request)
        if token is None:
            raise UnauthorizedFault("No token provided")

        try:
            claims = verify_access_token(token, self.config)
        except TokenError as exc:
            logger.info("Rejected token for %s %s: %s", request.method, request.path, exc)
            raise UnauthorizedFault("Invalid or expired token") from exc

        return request.with_principal(claims)
