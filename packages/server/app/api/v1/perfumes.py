"""
Perfume endpoints: collection CRUD, favorites, feed and category counts.

POST   /api/v1/perfumes                      - Add a perfume (followers notified)
GET    /api/v1/perfumes                      - Feed (view=my|user|following + filters)
GET    /api/v1/perfumes/categories/counts    - Category counts for a user
GET    /api/v1/perfumes/{perfumeId}          - Perfume detail
PATCH  /api/v1/perfumes/{perfumeId}          - Update (owner only)
DELETE /api/v1/perfumes/{perfumeId}          - Delete (owner only, followers notified)
POST   /api/v1/perfumes/{perfumeId}/favorite - Toggle favorite (owner only)
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_request_context, require_authenticated
from app.core.context import RequestContext
from app.core.database import get_session
from app.services import feed as feed_service
from app.services import perfumes as perfume_service
from app.services.notifications import NotificationSink, get_notification_sink
from scentshelf_shared.schemas.common import (
    ActionResult,
    CategoryFilter,
    FeedScope,
    SortDirection,
    SortOption,
)
from scentshelf_shared.schemas.perfumes import (
    CategoryCountsResponse,
    FavoriteToggleResponse,
    FeedQuery,
    PerfumeActionResponse,
    PerfumeCreate,
    PerfumeRead,
    PerfumeUpdate,
)

router = APIRouter()


@router.post("", response_model=PerfumeActionResponse, status_code=201)
async def create_perfume(
    body: PerfumeCreate,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    perfume = await perfume_service.create_perfume(session, ctx, sink, body)
    return PerfumeActionResponse(perfume=perfume)


@router.get("", response_model=List[PerfumeRead])
async def list_perfumes(
    view: FeedScope = FeedScope.MY,
    user: Optional[uuid.UUID] = None,
    category: CategoryFilter = "All",
    search: str = "",
    sort: SortOption = SortOption.CREATED_AT,
    dir: SortDirection = SortDirection.DESC,
    favorites: bool = False,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Filtered, sorted perfume feed."""
    query = FeedQuery(
        scope=view,
        user_id=user,
        category=category,
        search=search,
        favorites_only=favorites,
        sort_by=sort,
        sort_direction=dir,
    )
    return await feed_service.list_perfumes(session, ctx, query)


@router.get("/categories/counts", response_model=CategoryCountsResponse)
async def category_counts(
    user: Optional[uuid.UUID] = Query(None, description="Owner; defaults to the caller"),
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    counts = await feed_service.category_counts(session, ctx, user)
    return CategoryCountsResponse(user_id=user or ctx.user_id, counts=counts)


@router.get("/{perfumeId}", response_model=PerfumeRead)
async def get_perfume(
    perfumeId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await perfume_service.get_perfume(session, perfumeId)


@router.patch("/{perfumeId}", response_model=PerfumeActionResponse)
async def update_perfume(
    perfumeId: uuid.UUID,
    body: PerfumeUpdate,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    perfume = await perfume_service.update_perfume(session, ctx, perfumeId, body)
    return PerfumeActionResponse(perfume=perfume)


@router.delete("/{perfumeId}", response_model=ActionResult)
async def delete_perfume(
    perfumeId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    await perfume_service.delete_perfume(session, ctx, sink, perfumeId)
    return ActionResult()


@router.post("/{perfumeId}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    perfumeId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    is_favorite = await perfume_service.toggle_favorite(session, ctx, perfumeId)
    return FavoriteToggleResponse(is_favorite=is_favorite)
