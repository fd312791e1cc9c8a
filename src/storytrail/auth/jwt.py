"""
Bearer token verification.

Accounts live with the external auth provider, which signs access tokens with
a shared HS256 secret. The engine only needs the ``sub`` claim (player id);
``create_access_token`` exists for local play-testing and the test-suite.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from storytrail.config import get_settings


def create_access_token(player_id: str, *, email: str | None = None, expires_minutes: int | None = None) -> str:
    """
    Mint an access token shaped like the provider's.

    Args:
        player_id: The player's id, placed in ``sub``.
        email: Optional email claim.
        expires_minutes: Override for the configured lifetime.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    lifetime = expires_minutes if expires_minutes is not None else settings.jwt_access_token_expire_minutes
    payload: dict[str, Any] = {
        "sub": player_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(minutes=lifetime),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired, signed with
            another key, meant for another audience or has no subject.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if not payload.get("sub"):
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)
    return payload
