"""Notification model. Rows are written by the fan-out engine only."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, _utcnow


class Notification(UUIDMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    user_id: uuid.UUID = Field(
        foreign_key="profiles.id", ondelete="CASCADE", nullable=False, index=True
    )  # recipient
    from_user_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="profiles.id", ondelete="SET NULL"
    )
    type: str = Field(nullable=False)  # follow | new_perfume | perfume_deleted | new_comment
    title: str = Field(nullable=False)
    message: str = Field(nullable=False)
    perfume_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="perfumes.id", ondelete="SET NULL"
    )
    is_read: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        index=True,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
