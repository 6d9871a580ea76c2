"""Dashboard schemas: URL filter state and the composed page payload."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import CategoryFilter, DashboardView, SortDirection, SortOption
from .perfumes import PerfumeRead
from .users import ProfileRead, UserSummary


class DashboardFilters(BaseModel):
    """Filter state as carried in the page URL query string."""
    category: CategoryFilter = "All"
    search: str = ""
    sort: SortOption = SortOption.CREATED_AT
    dir: SortDirection = SortDirection.DESC
    view: DashboardView = DashboardView.MY
    user: Optional[UUID] = None
    readonly: bool = False


class DashboardResponse(BaseModel):
    filters: DashboardFilters
    perfumes: List[PerfumeRead] = Field(default_factory=list)
    category_counts: Dict[str, int] = Field(default_factory=dict)
    favorites: List[PerfumeRead] = Field(default_factory=list)
    users: List[UserSummary] = Field(default_factory=list)
    selected_user: Optional[ProfileRead] = None
