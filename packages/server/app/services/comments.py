"""
Comment service: per-perfume comments with a per-(author, perfume) quota.

The quota check and the insert run in one transaction while the target
perfume row is locked, so concurrent submissions by the same author are
serialized and cannot exceed the quota.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import (
    AuthorizationError,
    NotFoundError,
    QuotaExceededError,
    ValidationFailed,
)
from app.models.comment import PerfumeComment
from app.models.perfume import Perfume
from app.models.profile import Profile
from app.services import notifications
from app.services.notifications import NotificationSink
from app.services.perfumes import get_perfume_or_404
from app.services.profiles import display_name
from scentshelf_shared.schemas.comments import CommentRead
from scentshelf_shared.schemas.common import COMMENT_MAX_LENGTH, COMMENT_QUOTA

log = structlog.get_logger()


def validate_comment_text(text: str) -> str:
    """Trim and check length. Raises ValidationFailed without touching the store."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationFailed("Comment cannot be empty")
    if len(cleaned) > COMMENT_MAX_LENGTH:
        raise ValidationFailed(f"Comment cannot be longer than {COMMENT_MAX_LENGTH} characters")
    return cleaned


def _to_read(comment: PerfumeComment, full_name, email, avatar_url) -> CommentRead:
    return CommentRead(
        id=comment.id,
        perfume_id=comment.perfume_id,
        user_id=comment.user_id,
        comment=comment.comment,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user_name=display_name(full_name, email),
        user_email=email,
        user_avatar=avatar_url,
    )


async def _count(session: AsyncSession, perfume_id: uuid.UUID, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(PerfumeComment)
        .where(PerfumeComment.perfume_id == perfume_id, PerfumeComment.user_id == user_id)
    )
    return result.scalar_one()


async def list_comments(session: AsyncSession, perfume_id: uuid.UUID) -> list[CommentRead]:
    """All comments on a perfume, newest first, with author details. Public."""
    await get_perfume_or_404(session, perfume_id)
    result = await session.execute(
        select(PerfumeComment, Profile.full_name, Profile.email, Profile.avatar_url)
        .outerjoin(Profile, Profile.id == PerfumeComment.user_id)
        .where(PerfumeComment.perfume_id == perfume_id)
        .order_by(PerfumeComment.created_at.desc(), PerfumeComment.id.desc())
    )
    return [_to_read(*row) for row in result.all()]


async def count_user_comments(
    session: AsyncSession, ctx: RequestContext, perfume_id: uuid.UUID
) -> int:
    """How many live comments the caller has on the perfume."""
    me = ctx.require_user()
    return await _count(session, perfume_id, me.id)


async def add_comment(
    session: AsyncSession,
    ctx: RequestContext,
    sink: NotificationSink,
    perfume_id: uuid.UUID,
    text: str,
) -> CommentRead:
    me = ctx.require_user()
    cleaned = validate_comment_text(text)

    # Lock the perfume row for the count + insert
    result = await session.execute(
        select(Perfume).where(Perfume.id == perfume_id).with_for_update()
    )
    perfume = result.scalars().first()
    if perfume is None:
        raise NotFoundError("Perfume not found")

    existing = await _count(session, perfume_id, me.id)
    if existing >= COMMENT_QUOTA:
        await session.rollback()
        log.info(
            "comment.quota_exceeded",
            perfume_id=str(perfume_id),
            user_id=str(me.id),
            count=existing,
        )
        raise QuotaExceededError(
            f"You can add at most {COMMENT_QUOTA} comments to a perfume"
        )

    comment = PerfumeComment(perfume_id=perfume_id, user_id=me.id, comment=cleaned)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)

    log.info("comment.created", comment_id=str(comment.id), perfume_id=str(perfume_id))

    created = _to_read(comment, me.name, me.email, me.avatar_url)
    await notifications.notify_new_comment(
        session,
        sink,
        commenter_id=me.id,
        owner_id=perfume.user_id,
        perfume_id=perfume.id,
        perfume_name=perfume.name,
    )
    return created


async def delete_comment(
    session: AsyncSession, ctx: RequestContext, comment_id: uuid.UUID
) -> None:
    """Delete one of the caller's comments. No notification is sent."""
    me = ctx.require_user()
    comment = await session.get(PerfumeComment, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    if comment.user_id != me.id:
        raise AuthorizationError("You can only delete your own comments")

    await session.execute(
        delete(PerfumeComment)
        .where(PerfumeComment.id == comment_id, PerfumeComment.user_id == me.id)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    session.expunge(comment)
    log.info("comment.deleted", comment_id=str(comment_id))
