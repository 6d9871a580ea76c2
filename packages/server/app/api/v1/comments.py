"""
Comment endpoints.

GET    /api/v1/perfumes/{perfumeId}/comments        - List comments (newest first)
GET    /api/v1/perfumes/{perfumeId}/comments/count  - Caller's count vs. quota
POST   /api/v1/perfumes/{perfumeId}/comments        - Add a comment (quota enforced)
DELETE /api/v1/comments/{commentId}                 - Delete own comment
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_authenticated
from app.core.context import RequestContext
from app.core.database import get_session
from app.services import comments as comment_service
from app.services.notifications import NotificationSink, get_notification_sink
from scentshelf_shared.schemas.comments import (
    CommentActionResponse,
    CommentCountResponse,
    CommentCreate,
    CommentRead,
)
from scentshelf_shared.schemas.common import COMMENT_QUOTA, ActionResult

# Perfume-scoped routes, mounted under /perfumes/{perfumeId}/comments
router = APIRouter()

# Comment-scoped routes, mounted under /comments
router_global = APIRouter()


@router.get("", response_model=List[CommentRead])
async def list_comments(
    perfumeId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await comment_service.list_comments(session, perfumeId)


@router.get("/count", response_model=CommentCountResponse)
async def user_comment_count(
    perfumeId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    count = await comment_service.count_user_comments(session, ctx, perfumeId)
    return CommentCountResponse(count=count, remaining=max(COMMENT_QUOTA - count, 0))


@router.post("", response_model=CommentActionResponse, status_code=201)
async def add_comment(
    perfumeId: uuid.UUID,
    body: CommentCreate,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    comment = await comment_service.add_comment(session, ctx, sink, perfumeId, body.comment)
    return CommentActionResponse(comment=comment)


@router_global.delete("/{commentId}", response_model=ActionResult)
async def delete_comment(
    commentId: uuid.UUID,
    ctx: RequestContext = Depends(require_authenticated),
    session: AsyncSession = Depends(get_session),
):
    await comment_service.delete_comment(session, ctx, commentId)
    return ActionResult()
