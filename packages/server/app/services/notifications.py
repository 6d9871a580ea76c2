"""
Notification service: fan-out engine, delivery sink, and the recipient inbox.

Fan-out rules:
- new perfume by U       -> every follower of U
- perfume deleted by U   -> every follower of U (perfume id no longer resolvable)
- comment by C on P of O -> O only, and only when C != O
- A follows B            -> B only

Fan-out runs after the triggering mutation has been committed and is
best-effort: a failed recipient lookup or insert is rolled back and logged,
and the triggering action still succeeds. There is no deduplication.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable, Optional, Protocol, Sequence

import structlog
from fastapi import Depends
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.context import RequestContext
from app.core.database import get_session
from app.core.errors import NotFoundError
from app.models.follow import UserFollow
from app.models.notification import Notification
from app.models.perfume import Perfume
from app.models.profile import Profile
from app.services.profiles import display_name
from scentshelf_shared.schemas.common import NotificationType
from scentshelf_shared.schemas.notifications import NotificationDraft, NotificationRead

log = structlog.get_logger()
settings = get_settings()


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------


class NotificationSink(Protocol):
    """Where fan-out drafts go. Swappable for a queue without touching callers."""

    async def deliver(self, drafts: Sequence[NotificationDraft]) -> None: ...


class SessionNotificationSink:
    """Insert one notification row per draft in the request's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def deliver(self, drafts: Sequence[NotificationDraft]) -> None:
        self.session.add_all(
            [
                Notification(
                    user_id=d.user_id,
                    from_user_id=d.from_user_id,
                    type=d.type.value,
                    title=d.title,
                    message=d.message,
                    perfume_id=d.perfume_id,
                )
                for d in drafts
            ]
        )
        await self.session.commit()


def get_notification_sink(
    session: AsyncSession = Depends(get_session),
) -> NotificationSink:
    """FastAPI dependency for the default sink."""
    return SessionNotificationSink(session)


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


async def follower_ids(session: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    result = await session.execute(
        select(UserFollow.follower_id).where(UserFollow.following_id == user_id)
    )
    return [row[0] for row in result.all()]


async def _fan_out(
    session: AsyncSession,
    sink: NotificationSink,
    event: NotificationType,
    actor_id: uuid.UUID,
    build: Callable[[], Awaitable[list[NotificationDraft]]],
) -> int:
    """Compute drafts and deliver them; never raises. Returns rows delivered."""
    try:
        drafts = await build()
        if not drafts:
            log.debug("notifications.no_recipients", kind=event.value, actor_id=str(actor_id))
            return 0
        await sink.deliver(drafts)
    except Exception:
        await session.rollback()
        log.exception(
            "notifications.fanout_failed", kind=event.value, actor_id=str(actor_id)
        )
        return 0

    log.info(
        "notifications.fanout",
        kind=event.value,
        actor_id=str(actor_id),
        recipients=len(drafts),
    )
    return len(drafts)


async def notify_new_perfume(
    session: AsyncSession,
    sink: NotificationSink,
    owner_id: uuid.UUID,
    perfume_id: uuid.UUID,
    perfume_name: str,
) -> int:
    async def build() -> list[NotificationDraft]:
        return [
            NotificationDraft(
                user_id=follower_id,
                from_user_id=owner_id,
                type=NotificationType.NEW_PERFUME,
                title="New perfume!",
                message=f"Added a new perfume: {perfume_name}",
                perfume_id=perfume_id,
            )
            for follower_id in await follower_ids(session, owner_id)
        ]

    return await _fan_out(session, sink, NotificationType.NEW_PERFUME, owner_id, build)


async def notify_perfume_deleted(
    session: AsyncSession,
    sink: NotificationSink,
    owner_id: uuid.UUID,
    perfume_name: str,
    perfume_brand: str,
) -> int:
    async def build() -> list[NotificationDraft]:
        return [
            NotificationDraft(
                user_id=follower_id,
                from_user_id=owner_id,
                type=NotificationType.PERFUME_DELETED,
                title="Perfume deleted",
                message=f"Deleted a perfume: {perfume_name} by {perfume_brand}",
            )
            for follower_id in await follower_ids(session, owner_id)
        ]

    return await _fan_out(session, sink, NotificationType.PERFUME_DELETED, owner_id, build)


async def notify_new_comment(
    session: AsyncSession,
    sink: NotificationSink,
    commenter_id: uuid.UUID,
    owner_id: uuid.UUID,
    perfume_id: uuid.UUID,
    perfume_name: str,
) -> int:
    if commenter_id == owner_id:
        return 0

    async def build() -> list[NotificationDraft]:
        return [
            NotificationDraft(
                user_id=owner_id,
                from_user_id=commenter_id,
                type=NotificationType.NEW_COMMENT,
                title="New comment!",
                message=f"Commented on your perfume: {perfume_name}",
                perfume_id=perfume_id,
            )
        ]

    return await _fan_out(session, sink, NotificationType.NEW_COMMENT, commenter_id, build)


async def notify_follow(
    session: AsyncSession,
    sink: NotificationSink,
    follower_id: uuid.UUID,
    following_id: uuid.UUID,
) -> int:
    async def build() -> list[NotificationDraft]:
        return [
            NotificationDraft(
                user_id=following_id,
                from_user_id=follower_id,
                type=NotificationType.FOLLOW,
                title="New follower!",
                message="Started following you",
            )
        ]

    return await _fan_out(session, sink, NotificationType.FOLLOW, follower_id, build)


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------


async def list_notifications(
    session: AsyncSession, ctx: RequestContext, limit: Optional[int] = None
) -> list[NotificationRead]:
    """Newest notifications for the caller, with perfume and sender details."""
    me = ctx.require_user()
    limit = limit or settings.notification_page_size

    result = await session.execute(
        select(
            Notification,
            Perfume.name,
            Profile.full_name,
            Profile.email,
            Profile.avatar_url,
        )
        .outerjoin(Perfume, Perfume.id == Notification.perfume_id)
        .outerjoin(Profile, Profile.id == Notification.from_user_id)
        .where(Notification.user_id == me.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )

    items = []
    for n, perfume_name, full_name, email, avatar_url in result.all():
        items.append(
            NotificationRead(
                id=n.id,
                user_id=n.user_id,
                from_user_id=n.from_user_id,
                type=n.type,
                title=n.title,
                message=n.message,
                perfume_id=n.perfume_id,
                is_read=n.is_read,
                created_at=n.created_at,
                perfume_name=perfume_name,
                from_user_name=display_name(full_name, email) if n.from_user_id and email else None,
                from_user_avatar=avatar_url,
            )
        )
    return items


async def unread_count(session: AsyncSession, ctx: RequestContext) -> int:
    me = ctx.require_user()
    result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == me.id, Notification.is_read == False)  # noqa: E712
    )
    return result.scalar_one()


async def mark_read(
    session: AsyncSession, ctx: RequestContext, notification_id: uuid.UUID
) -> None:
    """Flip the read flag. Only the recipient can; anyone else sees 404."""
    me = ctx.require_user()
    result = await session.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == me.id)
        .values(is_read=True)
    )
    if result.rowcount == 0:
        raise NotFoundError("Notification not found")
    await session.commit()


async def mark_all_read(session: AsyncSession, ctx: RequestContext) -> int:
    me = ctx.require_user()
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == me.id, Notification.is_read == False)  # noqa: E712
        .values(is_read=True)
    )
    await session.commit()
    log.info("notifications.marked_all_read", user_id=str(me.id), updated=result.rowcount)
    return result.rowcount
