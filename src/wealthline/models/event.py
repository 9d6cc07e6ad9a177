"""Append-only event log table."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, DateTime, Index
from sqlmodel import Field, SQLModel

from ..clock import utcnow


class Event(SQLModel, table=True):
    """Immutable record of one state-changing action on a tracked entity.

    Rows are only ever inserted. ``(timestamp, id)`` orders a user's history.
    """

    __tablename__: ClassVar[str] = "event"
    __table_args__ = (Index("ix_event_user_timestamp_id", "user_id", "timestamp", "id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(
        default_factory=utcnow, nullable=False, index=True, sa_type=DateTime(timezone=False)
    )
    action_type: str = Field(nullable=False, max_length=16)
    entity_type: str = Field(nullable=False, max_length=32, index=True)
    entity_subtype: Optional[str] = Field(default=None, max_length=32)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    entity_id: int = Field(nullable=False, index=True)
    before_value: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    after_value: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
