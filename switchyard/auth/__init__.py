"""
Switchyard Auth - bearer-token authentication for non-public routes.
"""

from .middleware import Authenticator, BearerAuthenticator, extract_bearer_token
from .tokens import TokenConfig, TokenError, sign_access_token, verify_access_token

__all__ = [
    "Authenticator",
    "BearerAuthenticator",
    "extract_bearer_token",
    "TokenConfig",
    "TokenError",
    "sign_access_token",
    "verify_access_token",
]
