"""
HS256 access tokens.

Format: header.payload.signature
- header: {"alg": "HS256", "typ": "JWT"}
- payload: {"sub": "user_123", "iat": ..., "exp": ..., ...}
- signature: HMAC-SHA256(header + "." + payload, secret)
"""

from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac


class TokenError(ValueError):
    """Token is malformed, has a bad signature or is expired."""


@dataclass(frozen=True)
class TokenConfig:
    """Signing settings."""
    secret: str
    expires_in: int = 86400
    issuer: str | None = None
    leeway: int = 0


def _base64_encode(data: bytes) -> str:
    """URL-safe base64 encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _base64_decode(data: str) -> bytes:
    """URL-safe base64 decode, restoring padding."""
    padding = 4 - (len(data) % 4)
    if padding != 4:
        data += "=" * padding
    return base64.urlsafe_b64decode(data)


def _base64_encode_json(data: dict[str, Any]) -> str:
    return _base64_encode(json.dumps(data, separators=(",", ":")).encode())


def _base64_decode_json(data: str) -> dict[str, Any]:
    try:
        value = json.loads(_base64_decode(data))
    except (ValueError, TypeError) as exc:
        raise TokenError("Malformed token segment") from exc
    if not isinstance(value, dict):
        raise TokenError("Malformed token segment")
    return value


def _signer(secret: str) -> hmac.HMAC:
    return hmac.HMAC(secret.encode(), hashes.SHA256())


def sign_access_token(
    claims: dict[str, Any],
    config: TokenConfig,
    *,
    now: int | None = None,
) -> str:
    """
    Issue a signed access token for ``claims``.

    ``iat`` and ``exp`` are added; ``iss`` too when configured.
    """
    now = int(time.time()) if now is None else now
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + config.expires_in
    if config.issuer:
        payload["iss"] = config.issuer

    header_b64 = _base64_encode_json({"alg": "HS256", "typ": "JWT"})
    payload_b64 = _base64_encode_json(payload)
    message = f"{header_b64}.{payload_b64}".encode()

    signer = _signer(config.secret)
    signer.update(message)
    return f"{header_b64}.{payload_b64}.{_base64_encode(signer.finalize())}"


def verify_access_token(
    token: str,
    config: TokenConfig,
    *,
    now: int | None = None,
) -> dict[str, Any]:
    """
    Validate a token and return its claims.

    Checks, in order: format, algorithm, signature, expiry, issuer.

    Raises:
        TokenError: Invalid token
    """
    try:
        header_b64, payload_b64, signature_b64 = token.split(".")
    except ValueError:
        raise TokenError("Malformed token: expected 3 parts") from None

    header = _base64_decode_json(header_b64)
    if header.get("alg") != "HS256":
        raise TokenError(f"Unsupported algorithm: {header.get('alg')}")

    try:
        signature = _base64_decode(signature_b64)
    except ValueError:
        raise TokenError("Malformed signature") from None

    verifier = _signer(config.secret)
    verifier.update(f"{header_b64}.{payload_b64}".encode())
    try:
        verifier.verify(signature)
    except InvalidSignature:
        raise TokenError("Invalid signature") from None

    payload = _base64_decode_json(payload_b64)

    now = int(time.time()) if now is None else now
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp + config.leeway < now:
        raise TokenError("Token expired")

    if config.issuer and payload.get("iss") != config.issuer:
        raise TokenError("Unexpected issuer")

    return payload
