"""
Dashboard endpoint: one call per page load, driven by the URL query string.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_request_context
from app.core.context import RequestContext
from app.core.database import get_session
from app.services.dashboard import build_dashboard
from scentshelf_shared.schemas.common import (
    CategoryFilter,
    DashboardView,
    SortDirection,
    SortOption,
)
from scentshelf_shared.schemas.dashboard import DashboardFilters, DashboardResponse

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    category: CategoryFilter = "All",
    search: str = "",
    sort: SortOption = SortOption.CREATED_AT,
    dir: SortDirection = SortDirection.DESC,
    view: DashboardView = DashboardView.MY,
    user: Optional[uuid.UUID] = None,
    readonly: bool = False,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Feed, counts and side panels for the filter state in the URL.

    The applied filters are echoed back so the client can keep them in the URL.
    """
    filters = DashboardFilters(
        category=category,
        search=search.strip(),
        sort=sort,
        dir=dir,
        view=view,
        user=user,
        readonly=readonly,
    )
    return await build_dashboard(session, ctx, filters)
