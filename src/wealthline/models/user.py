"""User and currency reference models."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..clock import utcnow


class Currency(SQLModel, table=True):
    """Currency a user prefers amounts to be displayed in."""

    __tablename__: ClassVar[str] = "currency"

    id: Optional[int] = Field(default=None, primary_key=True)
    symbol: str = Field(nullable=False, max_length=8)
    name: str = Field(nullable=False, max_length=16)


class User(SQLModel, table=True):
    """Owner of every financial row; authentication lives outside the core."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True, index=True, max_length=64)
    email: str = Field(nullable=False, unique=True, index=True, max_length=255)
    is_admin: bool = Field(default=False, nullable=False)
    preferred_currency_id: int = Field(default=1, foreign_key="currency.id", nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=False)
    )
    last_login: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=False))
