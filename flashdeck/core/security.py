"""Bearer-token verification for the authenticated learner.

Tokens are minted by the identity service that shares ``SECRET_KEY``; this
service only verifies them and reads the learner id from ``sub``.
"""
from __future__ import annotations

import uuid

from jose import JWTError, jwt
from pydantic import ValidationError

from flashdeck.config import settings
from flashdeck.schemas.auth import TokenPayload

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot identify a learner."""


def learner_id_from_token(token: str) -> uuid.UUID:
    """Verify signature, expiry and token type, then return the ``sub`` learner id."""

    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidTokenError("Token must be an access token")
    try:
        return TokenPayload.model_validate(claims).sub
    except ValidationError as exc:
        raise InvalidTokenError("Token subject is not a learner id") from exc
