"""Identity, profile and follow-graph schemas."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import ActionResult


class CurrentUser(BaseModel):
    """The authenticated identity as supplied by the identity provider."""
    id: UUID
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserSummary(BaseModel):
    """A row in the user explorer."""
    id: UUID
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    perfume_count: int = 0
    is_following: bool = False


class UserListResponse(BaseModel):
    data: List[UserSummary]


class ProfileRead(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_following: bool = False
    follower_count: int = 0
    following_count: int = 0


class FollowActionResponse(ActionResult):
    is_following: bool


class FollowingResponse(BaseModel):
    following_ids: List[UUID] = Field(default_factory=list)
