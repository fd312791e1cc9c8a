"""FastAPI authentication dependencies."""

from __future__ import annotations

from dataclasses import dataclass

import jwt
import structlog
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storytrail.auth.jwt import verify_token
from storytrail.exceptions import AuthError

logger = structlog.get_logger()

# auto_error=False so a missing header becomes our own 401 {"error": "Unauthorized"}
_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Player:
    """Authenticated caller identity."""

    id: str
    email: str | None = None


def _player_from_credentials(credentials: HTTPAuthorizationCredentials | None) -> Player:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.info("token_rejected", reason=str(e))
        raise AuthError from e
    return Player(id=str(payload["sub"]), email=payload.get("email"))


async def get_current_player(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> Player:
    """Verify the bearer token and return the caller. Raises AuthError (401)."""
    return _player_from_credentials(credentials)


async def get_optional_player(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> Player | None:
    """Same as get_current_player but anonymous callers get None."""
    if credentials is None:
        return None
    try:
        return _player_from_credentials(credentials)
    except AuthError:
        return None
