"""Notification schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from .common import ActionResult, NotificationType


class NotificationDraft(BaseModel):
    """A notification about to be delivered to one recipient."""
    user_id: UUID
    from_user_id: Optional[UUID] = None
    type: NotificationType
    title: str
    message: str
    perfume_id: Optional[UUID] = None


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    from_user_id: Optional[UUID] = None
    type: NotificationType
    title: str
    message: str
    perfume_id: Optional[UUID] = None
    is_read: bool
    created_at: datetime
    perfume_name: Optional[str] = None
    from_user_name: Optional[str] = None
    from_user_avatar: Optional[str] = None


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(ActionResult):
    updated: int = 0
