"""Cached materializations of reducer output."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, ClassVar

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from ..clock import utcnow


class FinancialSnapshot(SQLModel, table=True):
    """Replayed state of one user as of ``date``; derived data, safe to delete."""

    __tablename__: ClassVar[str] = "financial_snapshot"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_financial_snapshot_user_date"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    date: datetime = Field(nullable=False, index=True, sa_type=DateTime(timezone=False))
    data: dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=False)
    )
