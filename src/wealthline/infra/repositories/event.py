"""SQLModel implementation of the event repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...domain.repositories.filters import EventFilters
from ..database import SessionFactory
from ...models.event import Event


class SQLModelEventRepository:
    """SQLModel-based event log; rows are inserted and read, never changed."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def add(self, event: Event, *, session: Session) -> Event:
        """Insert an event inside the caller's transaction and assign its id."""
        session.add(event)
        session.flush()
        return event

    def _filtered(self, statement, *, user_id: int, filters: EventFilters):
        statement = statement.where(Event.user_id == user_id)
        if filters.entity_type:
            statement = statement.where(Event.entity_type == filters.entity_type)
        if filters.entity_id is not None:
            statement = statement.where(Event.entity_id == filters.entity_id)
        if filters.action_type:
            statement = statement.where(Event.action_type == filters.action_type)
        if filters.after is not None:
            statement = statement.where(Event.timestamp > filters.after)
        if filters.start is not None:
            statement = statement.where(Event.timestamp >= filters.start)
        if filters.end is not None:
            statement = statement.where(Event.timestamp <= filters.end)
        return statement

    def query(self, *, user_id: int, filters: EventFilters | None = None) -> list[Event]:
        """Return events ordered by (timestamp, id)."""
        filters = filters or EventFilters()
        with self.session_factory() as session:
            statement = self._filtered(select(Event), user_id=user_id, filters=filters)
            if filters.descending:
                statement = statement.order_by(Event.timestamp.desc(), Event.id.desc())  # type: ignore
            else:
                statement = statement.order_by(Event.timestamp, Event.id)  # type: ignore
            if filters.offset:
                statement = statement.offset(filters.offset)
            if filters.limit is not None:
                statement = statement.limit(filters.limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def count(self, *, user_id: int, filters: EventFilters | None = None) -> int:
        """Count events matching the filters, ignoring pagination."""
        filters = filters or EventFilters()
        with self.session_factory() as session:
            statement = self._filtered(
                select(func.count()).select_from(Event), user_id=user_id, filters=filters
            )
            return int(session.exec(statement).one())

    def earliest_timestamp(self, *, user_id: int) -> Optional[datetime]:
        """Timestamp of the user's first event, if any."""
        with self.session_factory() as session:
            return session.exec(
                select(func.min(Event.timestamp)).where(Event.user_id == user_id)
            ).one()

    def latest_id(
        self, *, user_id: int, up_to: datetime | None = None, session: Session | None = None
    ) -> Optional[int]:
        """Highest event id for the user, optionally among events with timestamp <= up_to."""
        statement = select(func.max(Event.id)).where(Event.user_id == user_id)
        if up_to is not None:
            statement = statement.where(Event.timestamp <= up_to)
        if session is not None:
            return session.exec(statement).one()
        with self.session_factory() as own_session:
            return own_session.exec(statement).one()
