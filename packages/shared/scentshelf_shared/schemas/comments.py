from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from .common import COMMENT_QUOTA, ActionResult


class CommentCreate(BaseModel):
    # Length rules are enforced by the comment service so that direct callers
    # get the same validation as HTTP clients.
    comment: str


class CommentRead(BaseModel):
    id: UUID
    perfume_id: UUID
    user_id: UUID
    comment: str
    created_at: datetime
    updated_at: datetime
    user_name: str
    user_email: Optional[str] = None
    user_avatar: Optional[str] = None


class CommentActionResponse(ActionResult):
    comment: Optional[CommentRead] = None


class CommentCountResponse(BaseModel):
    count: int
    limit: int = COMMENT_QUOTA
    remaining: int
