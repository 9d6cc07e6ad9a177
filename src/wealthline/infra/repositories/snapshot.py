"""SQLModel implementation of the snapshot repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from ..database import SessionFactory
from ...models.snapshot import FinancialSnapshot


class SQLModelSnapshotRepository:
    """SQLModel-based snapshot cache."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def latest_on_or_before(self, *, user_id: int, as_of: datetime) -> Optional[FinancialSnapshot]:
        """Most recent snapshot with date <= as_of."""
        with self.session_factory() as session:
            obj = session.exec(
                select(FinancialSnapshot)
                .where(FinancialSnapshot.user_id == user_id)
                .where(FinancialSnapshot.date <= as_of)
                .order_by(FinancialSnapshot.date.desc())  # type: ignore
                .limit(1)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int) -> list[FinancialSnapshot]:
        """All snapshots for the user, oldest first."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(FinancialSnapshot)
                    .where(FinancialSnapshot.user_id == user_id)
                    .order_by(FinancialSnapshot.date)  # type: ignore
                ).all()
            )
            session.expunge_all()
            return rows

    def list_dates(self, *, user_id: int) -> list[datetime]:
        """Dates of all snapshots for the user, ascending."""
        with self.session_factory() as session:
            return list(
                session.exec(
                    select(FinancialSnapshot.date)
                    .where(FinancialSnapshot.user_id == user_id)
                    .order_by(FinancialSnapshot.date)  # type: ignore
                ).all()
            )

    def add(self, snapshot: FinancialSnapshot, *, session: Session | None = None) -> FinancialSnapshot:
        """Persist a new snapshot, in the caller's transaction or its own."""
        if session is not None:
            session.add(snapshot)
            session.flush()
            return snapshot
        with self.session_factory() as session:
            session.add(snapshot)
            session.commit()
            session.refresh(snapshot)
            session.expunge(snapshot)
            return snapshot

    def delete_from(self, *, user_id: int, since: datetime, session: Session | None = None) -> int:
        """Delete snapshots dated at or after ``since``."""
        statement = (
            delete(FinancialSnapshot)
            .where(FinancialSnapshot.user_id == user_id)
            .where(FinancialSnapshot.date >= since)
        )
        if session is not None:
            return session.exec(statement).rowcount  # type: ignore[call-overload]
        with self.session_factory() as own_session:
            return own_session.exec(statement).rowcount  # type: ignore[call-overload]

    def delete_all(self, *, user_id: int) -> int:
        """Drop every cached snapshot for the user."""
        with self.session_factory() as session:
            result = session.exec(  # type: ignore[call-overload]
                delete(FinancialSnapshot).where(FinancialSnapshot.user_id == user_id)
            )
            return result.rowcount
