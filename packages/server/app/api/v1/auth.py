"""
Authentication endpoints.

Identity comes from the hosted provider; these routes only manage the
server-side view of it:
- POST /auth/session  - exchange a provider access token for session cookies
- GET  /auth/me       - current user, or null when anonymous
- POST /auth/signout  - revoke the current token and clear cookies
"""

from __future__ import annotations

from typing import Optional

import jwt
import structlog
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    decode_jwt,
    generate_csrf_token,
    get_request_context,
    identity_from_claims,
    is_jwt_revoked,
    remaining_lifetime,
    require_authenticated,
    revoke_jwt,
)
from app.core.config import get_settings
from app.core.context import RequestContext
from app.core.database import get_session
from app.core.errors import AuthenticationError
from app.core.middleware import CSRF_COOKIE, SESSION_COOKIE
from app.services import profiles as profile_service
from scentshelf_shared.schemas.common import ActionResult
from scentshelf_shared.schemas.users import CurrentUser

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


def _set_session_cookies(response: Response, token: str, csrf: str, max_age: int) -> None:
    """Set the session token and CSRF cookies on a response."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=not settings.debug,  # allow non-HTTPS in dev
        samesite="lax",
        path="/",
        max_age=max_age,
    )
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=max_age,
    )


class SessionRequest(BaseModel):
    access_token: str


class SessionResponse(ActionResult):
    user: CurrentUser
    csrf_token: str


@router.post("/session", response_model=SessionResponse)
async def create_session(
    body: SessionRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Verify a provider access token and store it in an HttpOnly cookie."""
    try:
        claims = decode_jwt(body.access_token)
    except jwt.PyJWTError as exc:
        log.info("auth.token_rejected", reason=type(exc).__name__)
        raise AuthenticationError("Invalid or expired session")

    jti = claims.get("jti") or claims.get("session_id")
    if jti and await is_jwt_revoked(jti):
        raise AuthenticationError("Session has been revoked")

    user = identity_from_claims(claims)
    await profile_service.ensure_profile(session, user)

    csrf = generate_csrf_token()
    _set_session_cookies(response, body.access_token, csrf, remaining_lifetime(claims.get("exp")))
    log.info("auth.session_created", user_id=str(user.id))
    return SessionResponse(user=user, csrf_token=csrf)


@router.get("/me", response_model=Optional[CurrentUser])
async def me(ctx: RequestContext = Depends(get_request_context)):
    """The authenticated user, or null for anonymous callers."""
    return ctx.user


@router.post("/signout", response_model=ActionResult)
async def signout(
    response: Response,
    ctx: RequestContext = Depends(require_authenticated),
):
    """Revoke the current token for the rest of its lifetime and clear cookies."""
    if ctx.token_id:
        await revoke_jwt(ctx.token_id, ttl_seconds=remaining_lifetime(ctx.token_expires_at))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")

    log.info("auth.signout", user_id=str(ctx.user_id))
    return ActionResult()
