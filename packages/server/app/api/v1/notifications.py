"""
Notification inbox endpoints. Rows are only ever created by fan-out.

GET  /api/v1/notifications                          - Newest notifications
GET  /api/v1/notifications/unread-count             - Unread badge count
POST /api/v1/notifications/{notificationId}/read    - Mark one as read
POST /api/v1/notifications/read-all                 - Mark all as read
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_authenticated
from app.core.context import RequestContext
from app.core.database import get_session
from app.services import notifications as notification_service
from scentshelf_shared.schemas.common import ActionResult
from scentshelf_shared.schemas.notifications import (
    MarkAllReadResponse,
    NotificationRead,
    UnreadCountResponse,
)

router = APIRouter()


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    return await notification_service.list_notifications(session, ctx)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    return UnreadCountResponse(count=await notification_service.unread_count(session, ctx))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    updated = await notification_service.mark_all_read(session, ctx)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notificationId}/read", response_model=ActionResult)
async def mark_read(
    notificationId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    await notification_service.mark_read(session, ctx, notificationId)
    return ActionResult()
