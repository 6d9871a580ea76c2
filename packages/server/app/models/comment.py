"""Perfume comment model."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class PerfumeComment(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "perfume_comments"
    __table_args__ = (
        sa.Index("ix_perfume_comments_perfume_user", "perfume_id", "user_id"),
    )

    perfume_id: uuid.UUID = Field(
        foreign_key="perfumes.id", ondelete="CASCADE", nullable=False, index=True
    )
    user_id: uuid.UUID = Field(
        foreign_key="profiles.id", ondelete="CASCADE", nullable=False
    )
    comment: str = Field(nullable=False, max_length=500)
