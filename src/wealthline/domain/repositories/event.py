"""Event repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from sqlmodel import Session

from ...models.event import Event
from .filters import EventFilters


class EventRepository(Protocol):
    """Append-only access to the event log; there is no update or delete."""

    def add(self, event: Event, *, session: Session) -> Event:
        """Insert an event inside the caller's transaction."""
        ...

    def query(self, *, user_id: int, filters: EventFilters | None = None) -> list[Event]:
        """Return events ordered by (timestamp, id)."""
        ...

    def count(self, *, user_id: int, filters: EventFilters | None = None) -> int:
        """Count events matching the filters, ignoring pagination."""
        ...

    def earliest_timestamp(self, *, user_id: int) -> Optional[datetime]:
        """Timestamp of the user's first event."""
        ...

    def latest_id(
        self, *, user_id: int, up_to: datetime | None = None, session: Session | None = None
    ) -> Optional[int]:
        """Highest event id for the user, optionally among events with timestamp <= up_to."""
        ...
