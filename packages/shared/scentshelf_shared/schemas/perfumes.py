"""Perfume collection and feed schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, field_validator

from .common import (
    ActionResult,
    CategoryFilter,
    FeedScope,
    PerfumeCategory,
    SortDirection,
    SortOption,
)


def _clean_notes(notes: List[str]) -> List[str]:
    return [n.strip() for n in notes if n and n.strip()]


def _dedupe_categories(categories: List[PerfumeCategory]) -> List[PerfumeCategory]:
    return list(dict.fromkeys(categories))


NoteList = Annotated[List[str], AfterValidator(_clean_notes)]
CategoryList = Annotated[List[PerfumeCategory], AfterValidator(_dedupe_categories)]


# ---------------------------------------------------------------------------
# Write schemas
# ---------------------------------------------------------------------------

class PerfumeCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=1, max_length=200)
    brand: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    rating: float = Field(default=4, ge=0, le=5, multiple_of=0.5)
    description: Optional[str] = None
    notes: NoteList = Field(default_factory=list)
    categories: CategoryList = Field(min_length=1)
    image_url: Optional[str] = None


class PerfumeUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    brand: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    rating: Optional[float] = Field(default=None, ge=0, le=5, multiple_of=0.5)
    description: Optional[str] = None
    notes: Optional[NoteList] = None
    categories: Optional[CategoryList] = Field(default=None, min_length=1)
    image_url: Optional[str] = None
    is_favorite: Optional[bool] = None


# ---------------------------------------------------------------------------
# Read schemas
# ---------------------------------------------------------------------------

class PerfumeRead(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    brand: str
    price: float
    rating: float
    description: Optional[str] = None
    notes: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    is_favorite: bool = False
    created_at: datetime
    updated_at: datetime
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    user_avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class PerfumeActionResponse(ActionResult):
    perfume: Optional[PerfumeRead] = None


class FavoriteToggleResponse(ActionResult):
    is_favorite: bool


class CategoryCountsResponse(BaseModel):
    user_id: UUID
    counts: Dict[str, int]


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------

class FeedFilters(BaseModel):
    """Filter and ordering options applied to any perfume feed."""
    category: CategoryFilter = "All"
    search: str = ""
    favorites_only: bool = False
    sort_by: SortOption = SortOption.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC

    @field_validator("search")
    @classmethod
    def _strip_search(cls, v: str) -> str:
        return v.strip()


class FeedQuery(FeedFilters):
    """A feed request: whose perfumes, plus the filters.

    scope=my uses the caller, scope=user requires user_id, and
    scope=following covers every user the caller follows.
    """
    scope: FeedScope = FeedScope.MY
    user_id: Optional[UUID] = None
