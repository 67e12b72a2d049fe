# src/ostrich/api/auth.py
from __future__ import annotations

import base64
import json

from pydantic import BaseModel, ValidationError

from ostrich.domain.errors import AuthError


class JwtPayload(BaseModel):
    sub: str
    email: str


def decode_jwt(token: str) -> JwtPayload:
    """
    Read the claims segment of an identity-provider ID token.

    The signature is checked by the API gateway in front of this service,
    so only the payload is decoded here.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise AuthError("JWT was not well formed!")

    payload_b64 = parts[1]
    padding = -len(payload_b64) % 4
    try:
        raw = base64.urlsafe_b64decode(payload_b64 + "=" * padding)
        claims = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as err:
        raise AuthError("JWT was not well formed!") from err

    if not isinstance(claims, dict):
        raise AuthError("JWT was not well formed!")
    try:
        return JwtPayload.model_validate(claims)
    except ValidationError as err:
        raise AuthError("JWT is missing sub/email claims") from err


def decode_bearer(header: str) -> JwtPayload:
    scheme, _, token = (header or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Authorization header must be 'Bearer <token>'")
    return decode_jwt(token.strip())
