"""
Follow graph service: directed follower -> following edges.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import ConflictError, NotFoundError, ValidationFailed
from app.models.follow import UserFollow
from app.models.profile import Profile
from app.services import notifications
from app.services.notifications import NotificationSink

log = structlog.get_logger()


async def is_following(
    session: AsyncSession, follower_id: uuid.UUID, following_id: uuid.UUID
) -> bool:
    result = await session.execute(
        select(UserFollow.id).where(
            UserFollow.follower_id == follower_id,
            UserFollow.following_id == following_id,
        )
    )
    return result.first() is not None


async def list_following_ids(session: AsyncSession, ctx: RequestContext) -> list[uuid.UUID]:
    me = ctx.require_user()
    result = await session.execute(
        select(UserFollow.following_id)
        .where(UserFollow.follower_id == me.id)
        .order_by(UserFollow.created_at)
    )
    return [row[0] for row in result.all()]


async def follow_user(
    session: AsyncSession,
    ctx: RequestContext,
    sink: NotificationSink,
    target_id: uuid.UUID,
) -> None:
    """Create the edge caller -> target and notify the target."""
    me = ctx.require_user()
    if target_id == me.id:
        raise ValidationFailed("Cannot follow yourself")

    if not await session.get(Profile, target_id):
        raise NotFoundError("User not found")
    if await is_following(session, me.id, target_id):
        raise ConflictError("Already following this user")

    session.add(UserFollow(follower_id=me.id, following_id=target_id))
    try:
        await session.commit()
    except IntegrityError:
        # Lost a race with a concurrent follow of the same pair
        await session.rollback()
        raise ConflictError("Already following this user")

    log.info("follow.created", follower_id=str(me.id), following_id=str(target_id))

    await notifications.notify_follow(session, sink, follower_id=me.id, following_id=target_id)


async def unfollow_user(
    session: AsyncSession, ctx: RequestContext, target_id: uuid.UUID
) -> None:
    """Remove the edge caller -> target. Missing edges are not an error."""
    me = ctx.require_user()
    result = await session.execute(
        delete(UserFollow).where(
            UserFollow.follower_id == me.id,
            UserFollow.following_id == target_id,
        )
    )
    await session.commit()
    if result.rowcount:
        log.info("follow.deleted", follower_id=str(me.id), following_id=str(target_id))
