"""Profile model (one row per identity provider account)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import _utcnow


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    # Same id as the identity provider's user; never generated locally
    id: uuid.UUID = Field(primary_key=True, nullable=False)
    email: str = Field(nullable=False, unique=True, index=True)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
