"""
Perfume service layer: collection CRUD and the favorite flag.

Handles:
- Create/update/delete of a user's own perfume entries
- Ownership checks (every write filters by perfume id AND acting user id)
- Atomic favorite toggle
- Follower notifications on create and delete
"""

from __future__ import annotations

import uuid
from typing import Optional

import sqlalchemy as sa
import structlog
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import AuthorizationError, NotFoundError
from app.models.perfume import Perfume
from app.models.profile import Profile
from app.services import notifications
from app.services.notifications import NotificationSink
from app.services.profiles import display_name
from scentshelf_shared.schemas.common import PerfumeCategory
from scentshelf_shared.schemas.perfumes import PerfumeCreate, PerfumeRead, PerfumeUpdate

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_read(
    perfume: Perfume,
    owner_email: Optional[str] = None,
    owner_name: Optional[str] = None,
    owner_avatar: Optional[str] = None,
) -> PerfumeRead:
    """Convert a Perfume row to its API shape, optionally with owner details."""
    return PerfumeRead(
        id=perfume.id,
        user_id=perfume.user_id,
        name=perfume.name,
        brand=perfume.brand,
        price=float(perfume.price),
        rating=perfume.rating,
        description=perfume.description,
        notes=list(perfume.notes or []),
        categories=list(perfume.categories or []),
        image_url=perfume.image_url,
        is_favorite=perfume.is_favorite,
        created_at=perfume.created_at,
        updated_at=perfume.updated_at,
        user_email=owner_email,
        user_name=display_name(owner_name, owner_email) if owner_email else owner_name,
        user_avatar=owner_avatar,
    )


async def get_perfume_or_404(session: AsyncSession, perfume_id: uuid.UUID) -> Perfume:
    perfume = await session.get(Perfume, perfume_id)
    if not perfume:
        raise NotFoundError("Perfume not found")
    return perfume


async def _get_owned_perfume(
    session: AsyncSession, ctx: RequestContext, perfume_id: uuid.UUID
) -> Perfume:
    me = ctx.require_user()
    perfume = await get_perfume_or_404(session, perfume_id)
    if perfume.user_id != me.id:
        raise AuthorizationError("You can only modify your own perfumes")
    return perfume


def _column_values(data: dict) -> dict:
    """Turn validated schema fields into column values."""
    if data.get("categories") is not None:
        data["categories"] = [PerfumeCategory(c).value for c in data["categories"]]
    return data


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_perfume(
    session: AsyncSession,
    ctx: RequestContext,
    sink: NotificationSink,
    data: PerfumeCreate,
) -> PerfumeRead:
    """Add a perfume to the caller's collection and notify their followers."""
    me = ctx.require_user()

    perfume = Perfume(
        user_id=me.id,
        is_favorite=False,
        **_column_values(data.model_dump()),
    )
    session.add(perfume)
    await session.commit()
    await session.refresh(perfume)

    log.info("perfume.created", perfume_id=str(perfume.id), user_id=str(me.id))

    created = to_read(perfume, me.email, me.name, me.avatar_url)
    await notifications.notify_new_perfume(
        session, sink, owner_id=me.id, perfume_id=perfume.id, perfume_name=perfume.name
    )
    return created


async def get_perfume(session: AsyncSession, perfume_id: uuid.UUID) -> PerfumeRead:
    """A single perfume with its owner's details. Public."""
    result = await session.execute(
        select(Perfume, Profile.email, Profile.full_name, Profile.avatar_url)
        .outerjoin(Profile, Profile.id == Perfume.user_id)
        .where(Perfume.id == perfume_id)
        .execution_options(populate_existing=True)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Perfume not found")
    perfume, email, full_name, avatar_url = row
    return to_read(perfume, email, full_name, avatar_url)


async def update_perfume(
    session: AsyncSession,
    ctx: RequestContext,
    perfume_id: uuid.UUID,
    data: PerfumeUpdate,
) -> PerfumeRead:
    me = ctx.require_user()
    perfume = await _get_owned_perfume(session, ctx, perfume_id)

    values = _column_values(data.model_dump(exclude_unset=True))
    # Explicit nulls on required columns mean "leave unchanged"
    for key in ("name", "brand", "price", "rating", "categories", "is_favorite"):
        if key in values and values[key] is None:
            del values[key]

    if values:
        await session.execute(
            update(Perfume)
            .where(Perfume.id == perfume_id, Perfume.user_id == me.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        await session.refresh(perfume)
        log.info("perfume.updated", perfume_id=str(perfume_id), fields=sorted(values))

    return to_read(perfume, me.email, me.name, me.avatar_url)


async def delete_perfume(
    session: AsyncSession,
    ctx: RequestContext,
    sink: NotificationSink,
    perfume_id: uuid.UUID,
) -> None:
    """Remove a perfume (its comments go with it) and notify followers."""
    me = ctx.require_user()
    perfume = await _get_owned_perfume(session, ctx, perfume_id)
    name, brand = perfume.name, perfume.brand

    await session.execute(
        delete(Perfume)
        .where(Perfume.id == perfume_id, Perfume.user_id == me.id)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    session.expunge(perfume)

    log.info("perfume.deleted", perfume_id=str(perfume_id), user_id=str(me.id))

    await notifications.notify_perfume_deleted(
        session, sink, owner_id=me.id, perfume_name=name, perfume_brand=brand
    )


async def toggle_favorite(
    session: AsyncSession, ctx: RequestContext, perfume_id: uuid.UUID
) -> bool:
    """Flip the favorite flag in a single conditional UPDATE. Returns the new value."""
    me = ctx.require_user()
    result = await session.execute(
        update(Perfume)
        .where(Perfume.id == perfume_id, Perfume.user_id == me.id)
        .values(is_favorite=sa.not_(Perfume.is_favorite))
        .returning(Perfume.is_favorite)
        .execution_options(synchronize_session=False)
    )
    is_favorite = result.scalar_one_or_none()
    if is_favorite is None:
        await session.rollback()
        # Distinguish a missing perfume from someone else's
        await _get_owned_perfume(session, ctx, perfume_id)
        raise NotFoundError("Perfume not found")
    await session.commit()

    log.info("perfume.favorite_toggled", perfume_id=str(perfume_id), is_favorite=is_favorite)
    return is_favorite
