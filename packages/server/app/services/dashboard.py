"""
Dashboard composition: maps URL filter state onto feed queries.

- view=my                 -> caller's feed, category counts, favorites
- view=explore&user=<id>  -> that user's feed, profile, category counts
- view=explore            -> user explorer list
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import RequestContext
from app.services import feed, profiles
from scentshelf_shared.schemas.common import DashboardView, FeedScope
from scentshelf_shared.schemas.dashboard import DashboardFilters, DashboardResponse
from scentshelf_shared.schemas.perfumes import FeedQuery


def _feed_query(filters: DashboardFilters, scope: FeedScope, **extra) -> FeedQuery:
    return FeedQuery(
        scope=scope,
        category=filters.category,
        search=filters.search,
        sort_by=filters.sort,
        sort_direction=filters.dir,
        **extra,
    )


async def build_dashboard(
    session: AsyncSession, ctx: RequestContext, filters: DashboardFilters
) -> DashboardResponse:
    if filters.view == DashboardView.MY:
        me = ctx.require_user()
        applied = filters.model_copy(update={"user": None, "readonly": False})
        return DashboardResponse(
            filters=applied,
            perfumes=await feed.list_perfumes(session, ctx, _feed_query(filters, FeedScope.MY)),
            category_counts=await feed.category_counts(session, ctx, me.id),
            favorites=await feed.list_perfumes(
                session, ctx, FeedQuery(scope=FeedScope.MY, favorites_only=True)
            ),
        )

    if filters.user is not None:
        selected = await profiles.get_user_profile(session, ctx, filters.user)
        # Someone else's collection is always read-only
        readonly = filters.readonly or ctx.user_id != filters.user
        return DashboardResponse(
            filters=filters.model_copy(update={"readonly": readonly}),
            perfumes=await feed.list_perfumes(
                session, ctx, _feed_query(filters, FeedScope.USER, user_id=filters.user)
            ),
            category_counts=await feed.category_counts(session, ctx, filters.user),
            selected_user=selected,
        )

    return DashboardResponse(
        filters=filters,
        users=await profiles.list_users(session, ctx),
    )
