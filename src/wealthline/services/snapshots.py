"""Monthly checkpoints that bound replay cost.

Snapshots are a cache over the event log. Failing to read or write one only makes the
next replay longer; it never changes the answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..clock import Clock, month_ends_between, utcnow
from ..domain.reducers import root_reducer
from ..domain.state import FinancialState
from ..errors import SnapshotError
from ..infra.repositories.snapshot import SQLModelSnapshotRepository
from ..logging_config import get_logger
from ..models.snapshot import FinancialSnapshot
from .event_store import EventStore

logger = get_logger("snapshots")


@dataclass(frozen=True)
class ReplayBase:
    """Starting point for a replay: a cached state or the empty state."""

    state: FinancialState
    as_of: Optional[datetime] = None
    snapshot_id: Optional[str] = None

    @property
    def from_snapshot(self) -> bool:
        return self.snapshot_id is not None


class SnapshotManager:
    """Finds usable snapshots and fills in missing month-end checkpoints."""

    def __init__(
        self,
        *,
        event_store: EventStore,
        snapshots: SQLModelSnapshotRepository,
        clock: Clock = utcnow,
        enabled: bool = True,
    ) -> None:
        self.event_store = event_store
        self.snapshots = snapshots
        self.clock = clock
        self.enabled = enabled

    def find_latest_snapshot(self, user_id: int, as_of: datetime) -> Optional[FinancialSnapshot]:
        """Most recent snapshot dated at or before ``as_of``, or None."""

        return self.snapshots.latest_on_or_before(user_id=user_id, as_of=as_of)

    def load_base(self, user_id: int, as_of: datetime) -> ReplayBase:
        """Return the newest readable snapshot at or before ``as_of``.

        Snapshots whose data cannot be decoded are skipped with a warning and the
        search continues further back, ending at the empty state.
        """

        snapshot = self.find_latest_snapshot(user_id, as_of)
        while snapshot is not None:
            try:
                state = FinancialState.from_dict(snapshot.data)
            except SnapshotError as exc:
                logger.warning(
                    "Ignoring unreadable snapshot",
                    extra={"user_id": user_id, "snapshot_id": snapshot.id, "error": str(exc)},
                )
                snapshot = self.find_latest_snapshot(
                    user_id, snapshot.date - timedelta(microseconds=1)
                )
                continue
            return ReplayBase(state=state, as_of=snapshot.date, snapshot_id=snapshot.id)
        return ReplayBase(state=FinancialState.empty())

    def ensure_monthly_checkpoints(
        self, user_id: int, *, now: datetime | None = None
    ) -> list[FinancialSnapshot]:
        """Create a snapshot for every completed month since the first event that lacks one.

        Idempotent: months that already have a snapshot are left alone. Write failures
        are logged and skipped. Returns the snapshots created by this call.
        """

        if not self.enabled:
            return []
        now = now or self.clock()
        earliest = self.event_store.earliest_timestamp(user_id)
        if earliest is None:
            return []

        existing = set(self.snapshots.list_dates(user_id=user_id))
        missing = [boundary for boundary in month_ends_between(earliest, now) if boundary not in existing]
        if not missing:
            return []

        # events appended after this point may be missing from the folded state
        watermark = self.event_store.latest_event_id(user_id)
        base = self.load_base(user_id, missing[0])
        pending = self.event_store.events_between(user_id, after=base.as_of, up_to=missing[-1])

        state = base.state
        position = 0
        created: list[FinancialSnapshot] = []
        for boundary in missing:
            while position < len(pending) and pending[position].timestamp <= boundary:
                state = root_reducer(state, pending[position])
                position += 1
            snapshot = self._persist(user_id, boundary, state, watermark)
            if snapshot is not None:
                created.append(snapshot)

        if created:
            logger.info(
                "Created monthly checkpoints",
                extra={
                    "user_id": user_id,
                    "count": len(created),
                    "first": created[0].date.isoformat(),
                    "last": created[-1].date.isoformat(),
                },
            )
        return created

    def rebuild_snapshots(self, user_id: int, *, now: datetime | None = None) -> list[FinancialSnapshot]:
        """Drop every cached snapshot for the user and regenerate them from the log."""

        removed = self.snapshots.delete_all(user_id=user_id)
        logger.info("Dropped snapshots for rebuild", extra={"user_id": user_id, "count": removed})
        return self.ensure_monthly_checkpoints(user_id, now=now)

    def _persist(
        self, user_id: int, boundary: datetime, state: FinancialState, watermark: Optional[int]
    ) -> Optional[FinancialSnapshot]:
        """Write one checkpoint unless the log up to ``boundary`` changed since it was read.

        The check and the insert share a transaction, so an event committed concurrently
        either blocks the insert or deletes the snapshot when it commits.
        """
        try:
            with self.event_store.session_factory() as session:
                latest = self.event_store.latest_event_id(user_id, up_to=boundary, session=session)
                if latest is not None and (watermark is None or latest > watermark):
                    logger.info(
                        "Skipped stale checkpoint",
                        extra={"user_id": user_id, "date": boundary.isoformat(), "event_id": latest},
                    )
                    return None
                return self.snapshots.add(
                    FinancialSnapshot(user_id=user_id, date=boundary, data=state.to_dict()),
                    session=session,
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "Checkpoint write failed; replay will start further back",
                extra={"user_id": user_id, "date": boundary.isoformat(), "error": str(exc)},
            )
            return None
