"""Follow graph edge (follower -> following)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, _utcnow


class UserFollow(UUIDMixin, SQLModel, table=True):
    __tablename__ = "user_follows"
    __table_args__ = (
        sa.UniqueConstraint("follower_id", "following_id", name="uq_user_follows_pair"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_user_follows_no_self"),
    )

    follower_id: uuid.UUID = Field(
        foreign_key="profiles.id", ondelete="CASCADE", nullable=False, index=True
    )
    following_id: uuid.UUID = Field(
        foreign_key="profiles.id", ondelete="CASCADE", nullable=False, index=True
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
