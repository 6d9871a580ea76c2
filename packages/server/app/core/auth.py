"""
Authentication for ScentShelf.

Identity is delegated to a hosted provider that issues signed JWT access
tokens. This module:
- verifies those tokens (Authorization: Bearer header or session cookie)
- maps token claims onto a CurrentUser
- keeps a Redis revocation list for signed-out tokens
- builds the RequestContext handed to every service call
"""

from __future__ import annotations

import secrets
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.context import RequestContext
from app.core.database import get_session
from app.core.errors import AuthenticationError
from app.core.middleware import CSRF_COOKIE, SESSION_COOKIE
from app.core.redis import get_redis
from app.services import profiles as profile_service
from scentshelf_shared.schemas.users import CurrentUser

log = structlog.get_logger()
settings = get_settings()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    email: str,
    *,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed access token shaped like the provider's. Returns (token, jti).

    Used by development tooling and tests; production tokens come from the
    identity provider.
    """
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    metadata = {}
    if full_name:
        metadata["full_name"] = full_name
    if avatar_url:
        metadata["avatar_url"] = avatar_url
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "user_metadata": metadata,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )


def identity_from_claims(claims: dict) -> CurrentUser:
    """Map provider claims onto a CurrentUser.

    Display name falls back from full_name to name; avatar from avatar_url to
    picture (Google accounts use the latter).
    """
    try:
        user_id = uuid.UUID(claims["sub"])
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid or expired session")
    metadata = claims.get("user_metadata") or {}
    return CurrentUser(
        id=user_id,
        email=claims.get("email") or "",
        name=metadata.get("full_name") or metadata.get("name") or None,
        avatar_url=metadata.get("avatar_url") or metadata.get("picture") or None,
    )


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int = 3600) -> None:
    """Add a JWT ID to the revocation list in Redis."""
    redis = await get_redis()
    await redis.setex(f"jwt:revoked:{jti}", ttl_seconds, "1")


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    redis = await get_redis()
    return await redis.exists(f"jwt:revoked:{jti}") > 0


def remaining_lifetime(expires_at: Optional[int], default: int = 3600) -> int:
    """Seconds until a token's ``exp``; at least one second."""
    if not expires_at:
        return default
    return max(int(expires_at - time.time()), 1)


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Request context dependencies
# ---------------------------------------------------------------------------

def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    return request.cookies.get(SESSION_COOKIE)


async def get_request_context(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> RequestContext:
    """Resolve the caller. No token means an anonymous, read-only context."""
    token = _extract_token(request, authorization)
    if not token:
        ctx = RequestContext()
        request.state.context = ctx
        return ctx

    try:
        claims = decode_jwt(token)
    except jwt.PyJWTError as exc:
        log.info("auth.token_rejected", reason=type(exc).__name__)
        raise AuthenticationError("Invalid or expired session")

    jti = claims.get("jti") or claims.get("session_id")
    if jti and await is_jwt_revoked(jti):
        raise AuthenticationError("Session has been revoked")

    user = identity_from_claims(claims)
    await profile_service.ensure_profile(session, user)

    ctx = RequestContext(user=user, token_id=jti, token_expires_at=claims.get("exp"))
    request.state.context = ctx
    return ctx


async def require_authenticated(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Reject anonymous callers before the handler runs."""
    ctx.require_user()
    return ctx
