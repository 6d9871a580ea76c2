"""
Feed/query layer: filtered, sorted perfume listings and category counts.

Owner scope, favorites flag, sort key and the id tie-break are pushed into
SQL. Category membership and free-text search are applied to the ordered
rows afterwards so that array columns behave identically on every backend.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import ValidationFailed
from app.models.follow import UserFollow
from app.models.perfume import Perfume
from app.models.profile import Profile
from app.services.perfumes import to_read
from scentshelf_shared.schemas.common import (
    ALL_CATEGORIES,
    CATEGORY_ORDER,
    FeedScope,
    SortDirection,
    SortOption,
)
from scentshelf_shared.schemas.perfumes import FeedQuery, PerfumeRead

log = structlog.get_logger()

SORT_COLUMNS = {
    SortOption.CREATED_AT: Perfume.created_at,
    SortOption.NAME: Perfume.name,
    SortOption.PRICE: Perfume.price,
    SortOption.RATING: Perfume.rating,
}


def matches_category(categories: Optional[Iterable[str]], category) -> bool:
    """True when ``category`` is the "All" sentinel or one of the perfume's tags."""
    value = getattr(category, "value", category)
    if value == ALL_CATEGORIES:
        return True
    return value in (categories or [])


def matches_search(perfume: Perfume, search: str) -> bool:
    """Case-insensitive substring match against name, brand or any note."""
    if not search:
        return True
    needle = search.casefold()
    haystack = [perfume.name or "", perfume.brand or "", *(perfume.notes or [])]
    return any(needle in text.casefold() for text in haystack)


async def _owner_ids(
    session: AsyncSession, ctx: RequestContext, query: FeedQuery
) -> list[uuid.UUID]:
    if query.scope == FeedScope.MY:
        return [ctx.require_user().id]
    if query.scope == FeedScope.USER:
        if query.user_id is None:
            raise ValidationFailed("A user id is required for a user feed")
        return [query.user_id]

    me = ctx.require_user()
    result = await session.execute(
        select(UserFollow.following_id).where(UserFollow.follower_id == me.id)
    )
    return [row[0] for row in result.all()]


async def list_perfumes(
    session: AsyncSession, ctx: RequestContext, query: FeedQuery
) -> list[PerfumeRead]:
    """Materialize the feed described by ``query``."""
    owners = await _owner_ids(session, ctx, query)
    if not owners:
        return []

    column = SORT_COLUMNS[query.sort_by]
    primary = column.asc() if query.sort_direction == SortDirection.ASC else column.desc()

    stmt = (
        select(Perfume, Profile.email, Profile.full_name, Profile.avatar_url)
        .outerjoin(Profile, Profile.id == Perfume.user_id)
        .where(Perfume.user_id.in_(owners))
    )
    if query.favorites_only:
        stmt = stmt.where(Perfume.is_favorite == True)  # noqa: E712
    stmt = stmt.order_by(primary, Perfume.id.asc()).execution_options(populate_existing=True)

    result = await session.execute(stmt)
    items = [
        to_read(perfume, email, full_name, avatar_url)
        for perfume, email, full_name, avatar_url in result.all()
        if matches_category(perfume.categories, query.category)
        and matches_search(perfume, query.search)
    ]

    log.debug(
        "feed.listed",
        scope=query.scope.value,
        owners=len(owners),
        results=len(items),
    )
    return items


def count_categories(category_lists: Iterable[Optional[Iterable[str]]]) -> dict[str, int]:
    """Map "All" plus every fixed category to the number of perfumes carrying it.

    A perfume with several tags counts once per tag; unknown tags are ignored.
    """
    counts = {category.value: 0 for category in CATEGORY_ORDER}
    total = 0
    for categories in category_lists:
        total += 1
        for tag in set(categories or []):
            if tag in counts:
                counts[tag] += 1
    return {ALL_CATEGORIES: total, **counts}


async def category_counts(
    session: AsyncSession, ctx: RequestContext, user_id: Optional[uuid.UUID] = None
) -> dict[str, int]:
    """Category counts for ``user_id``, or for the caller when omitted."""
    owner_id = user_id or ctx.require_user().id
    result = await session.execute(select(Perfume.categories).where(Perfume.user_id == owner_id))
    return count_categories(row[0] for row in result.all())
