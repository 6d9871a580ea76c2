"""Perfume model."""

from decimal import Decimal
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import StringList, TimestampMixin, UUIDMixin


class Perfume(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "perfumes"

    user_id: uuid.UUID = Field(
        foreign_key="profiles.id", ondelete="CASCADE", nullable=False, index=True
    )
    name: str = Field(nullable=False)
    brand: str = Field(nullable=False)
    price: Decimal = Field(sa_type=sa.Numeric(10, 2), nullable=False)
    rating: float = Field(default=0, nullable=False)  # 0-5 in half steps
    description: Optional[str] = None
    notes: List[str] = Field(default_factory=list, sa_type=StringList)
    categories: List[str] = Field(default_factory=list, sa_type=StringList)
    image_url: Optional[str] = None
    is_favorite: bool = Field(default=False, nullable=False)
