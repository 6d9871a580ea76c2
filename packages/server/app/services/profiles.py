"""
Profile service: first-seen profile creation, user explorer, public profiles.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import NotFoundError
from app.models.follow import UserFollow
from app.models.perfume import Perfume
from app.models.profile import Profile
from scentshelf_shared.schemas.users import CurrentUser, ProfileRead, UserSummary

log = structlog.get_logger()

FALLBACK_DISPLAY_NAME = "User"


def display_name(full_name: Optional[str], email: Optional[str]) -> str:
    """Full name, else the local part of the email, else a generic label."""
    if full_name:
        return full_name
    if email:
        local = email.split("@")[0]
        if local:
            return local
    return FALLBACK_DISPLAY_NAME


async def ensure_profile(session: AsyncSession, user: CurrentUser) -> Profile:
    """Return the caller's profile, creating it the first time the identity is seen."""
    profile = await session.get(Profile, user.id)
    if profile:
        return profile

    profile = Profile(
        id=user.id,
        email=user.email,
        full_name=user.name,
        avatar_url=user.avatar_url,
    )
    session.add(profile)
    try:
        await session.flush()
    except IntegrityError:
        # A concurrent first request created it.
        await session.rollback()
        profile = await session.get(Profile, user.id)
        if profile is None:
            raise
        return profile

    log.info("profile.created", user_id=str(user.id))
    return profile


async def _perfume_counts(
    session: AsyncSession, user_ids: list[uuid.UUID]
) -> dict[uuid.UUID, int]:
    if not user_ids:
        return {}
    result = await session.execute(
        select(Perfume.user_id, func.count().label("cnt"))
        .where(Perfume.user_id.in_(user_ids))
        .group_by(Perfume.user_id)
    )
    return {row.user_id: row.cnt for row in result}


async def list_users(session: AsyncSession, ctx: RequestContext) -> list[UserSummary]:
    """Every other user with perfume count and follow state.

    Followed users come first, then by perfume count (desc), then by name.
    """
    me = ctx.require_user()

    result = await session.execute(select(Profile).where(Profile.id != me.id))
    profiles = list(result.scalars().all())

    counts = await _perfume_counts(session, [p.id for p in profiles])

    result = await session.execute(
        select(UserFollow.following_id).where(UserFollow.follower_id == me.id)
    )
    following = {row[0] for row in result.all()}

    users = [
        UserSummary(
            id=p.id,
            email=p.email,
            full_name=p.full_name,
            avatar_url=p.avatar_url,
            perfume_count=counts.get(p.id, 0),
            is_following=p.id in following,
        )
        for p in profiles
    ]
    users.sort(
        key=lambda u: (
            not u.is_following,
            -u.perfume_count,
            display_name(u.full_name, u.email).casefold(),
            str(u.id),
        )
    )
    return users


async def get_user_profile(
    session: AsyncSession, ctx: RequestContext, user_id: uuid.UUID
) -> ProfileRead:
    profile = await session.get(Profile, user_id)
    if not profile:
        raise NotFoundError("User not found")

    follower_count = (
        await session.execute(
            select(func.count()).select_from(UserFollow).where(UserFollow.following_id == user_id)
        )
    ).scalar_one()
    following_count = (
        await session.execute(
            select(func.count()).select_from(UserFollow).where(UserFollow.follower_id == user_id)
        )
    ).scalar_one()

    is_following = False
    if ctx.is_authenticated:
        result = await session.execute(
            select(UserFollow.id).where(
                UserFollow.follower_id == ctx.user_id,
                UserFollow.following_id == user_id,
            )
        )
        is_following = result.first() is not None

    return ProfileRead(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        is_following=is_following,
        follower_count=follower_count,
        following_count=following_count,
    )
