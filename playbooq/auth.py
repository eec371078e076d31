"""
Authentication for Playbooq.

Sessions are issued by the hosted identity provider as signed JWTs. This
module only verifies them and turns the claims into a SessionUser.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated

import jwt
from fastapi import Header, Request

from playbooq import config
from playbooq.errors import AuthError
from playbooq.models.user import SessionUser


def create_session_token(user: SessionUser, expires_in: timedelta | None = None) -> str:
    """
    Create a signed session token for a user.

    The identity provider mints tokens in production; this is for tests and
    local tooling.

    Args:
        user: User whose id becomes the `sub` claim
        expires_in: Lifetime, defaults to JWT_EXPIRY_HOURS

    Returns:
        Signed JWT string
    """
    now = datetime.now(UTC)
    expires_at = now + (expires_in or timedelta(hours=config.settings.JWT_EXPIRY_HOURS))
    payload = {
        "sub": user.id,
        "exp": expires_at,
        "iat": now,
    }
    if user.email:
        payload["email"] = user.email
    if user.name:
        payload["name"] = user.name
    if user.avatar_url:
        payload["picture"] = user.avatar_url
    if config.settings.AUTH_JWT_ISSUER:
        payload["iss"] = config.settings.AUTH_JWT_ISSUER
    return jwt.encode(payload, config.settings.AUTH_JWT_SECRET, algorithm=config.settings.AUTH_JWT_ALGORITHM)


def decode_session_token(token: str) -> dict:
    """
    Decode and verify a session token.

    Raises:
        AuthError: If token is invalid or expired
    """
    options = {}
    kwargs = {}
    if config.settings.AUTH_JWT_ISSUER:
        kwargs["issuer"] = config.settings.AUTH_JWT_ISSUER
    else:
        options["verify_iss"] = False

    try:
        return jwt.decode(
            token,
            config.settings.AUTH_JWT_SECRET,
            algorithms=[config.settings.AUTH_JWT_ALGORITHM],
            options=options,
            **kwargs,
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Session expired. Please sign in again.") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid session token. Please sign in again.") from e


def user_from_token(token: str) -> SessionUser:
    payload = decode_session_token(token)
    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise AuthError("Invalid session token. Please sign in again.")
    return SessionUser(
        id=user_id,
        email=payload.get("email"),
        name=payload.get("name"),
        avatar_url=payload.get("picture"),
    )


def _extract_token(request: Request, authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        return authorization.removeprefix("Bearer ").strip() or None
    return request.cookies.get(config.settings.AUTH_SESSION_COOKIE)


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> SessionUser:
    """
    FastAPI dependency to get the current authenticated user.

    Tries the Bearer header first, then the session cookie.

    Raises:
        AuthError: If no valid session is present (401)
    """
    token = _extract_token(request, authorization)
    if not token:
        raise AuthError("Unauthorized")
    return user_from_token(token)


async def get_optional_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> SessionUser | None:
    """Like get_current_user, but anonymous callers get None."""
    token = _extract_token(request, authorization)
    if not token:
        return None
    try:
        return user_from_token(token)
    except AuthError:
        return None
