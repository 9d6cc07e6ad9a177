"""Snapshot repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from sqlmodel import Session

from ...models.snapshot import FinancialSnapshot


class SnapshotRepository(Protocol):
    """Storage for cached financial snapshots."""

    def latest_on_or_before(self, *, user_id: int, as_of: datetime) -> Optional[FinancialSnapshot]:
        """Most recent snapshot with date <= as_of."""
        ...

    def list_dates(self, *, user_id: int) -> list[datetime]:
        """Dates of all snapshots for the user, ascending."""
        ...

    def add(self, snapshot: FinancialSnapshot, *, session: Session | None = None) -> FinancialSnapshot:
        """Persist a new snapshot."""
        ...

    def delete_from(self, *, user_id: int, since: datetime, session: Session | None = None) -> int:
        """Delete snapshots dated at or after ``since``; returns the number removed."""
        ...
