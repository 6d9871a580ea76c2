"""
User explorer, public profiles and the follow graph.

GET    /api/v1/users                  - Explorer: every other user
GET    /api/v1/users/me/following     - Ids the caller follows
GET    /api/v1/users/{userId}         - Public profile
POST   /api/v1/users/{userId}/follow  - Follow (target notified)
DELETE /api/v1/users/{userId}/follow  - Unfollow (no-op when not following)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_request_context, require_authenticated
from app.core.context import RequestContext
from app.core.database import get_session
from app.services import follows as follow_service
from app.services import profiles as profile_service
from app.services.notifications import NotificationSink, get_notification_sink
from scentshelf_shared.schemas.users import (
    FollowActionResponse,
    FollowingResponse,
    ProfileRead,
    UserListResponse,
)

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    """Followed users first, then by collection size."""
    return UserListResponse(data=await profile_service.list_users(session, ctx))


@router.get("/me/following", response_model=FollowingResponse)
async def list_following(
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    return FollowingResponse(following_ids=await follow_service.list_following_ids(session, ctx))


@router.get("/{userId}", response_model=ProfileRead)
async def get_user(
    userId: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.get_user_profile(session, ctx, userId)


@router.post("/{userId}/follow", response_model=FollowActionResponse)
async def follow_user(
    userId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    await follow_service.follow_user(session, ctx, sink, userId)
    return FollowActionResponse(is_following=True)


@router.delete("/{userId}/follow", response_model=FollowActionResponse)
async def unfollow_user(
    userId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    await follow_service.unfollow_user(session, ctx, userId)
    return FollowActionResponse(is_following=False)
