"""Point-in-time and time-series views over a user's event history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..clock import Clock, add_months, to_utc_naive, utcnow
from ..domain.metrics import FinancialMetrics, compute_metrics
from ..domain.reducers import replay, root_reducer
from ..domain.state import FinancialState
from ..errors import SnapshotError
from ..logging_config import get_logger
from .event_store import EventStore
from .snapshots import SnapshotManager

logger = get_logger("analysis")

INTERVALS = ("daily", "weekly", "monthly")


@dataclass(frozen=True)
class FinancialPosition:
    """Reconstructed state plus metrics as of one instant."""

    as_of: datetime
    state: FinancialState
    metrics: FinancialMetrics
    base_snapshot_date: Optional[datetime] = None
    replayed_events: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.as_of.isoformat(),
            "state": self.state.to_dict(),
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class TrajectoryPoint:
    """One point of a wealth trajectory; velocity is the net worth change since the previous point."""

    date: datetime
    state: FinancialState
    metrics: FinancialMetrics
    net_worth_velocity: Optional[Decimal] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "metrics": self.metrics.to_dict(),
            "netWorthVelocity": None if self.net_worth_velocity is None else str(self.net_worth_velocity),
        }


def interval_boundaries(start: datetime, end: datetime, interval: str) -> Iterator[datetime]:
    """Yield ``start`` and each later interval step that does not pass ``end``."""

    if interval not in INTERVALS:
        raise ValueError(f"Unknown interval {interval!r}; expected one of {', '.join(INTERVALS)}")
    step = 0
    while True:
        if interval == "monthly":
            point = add_months(start, step)
        else:
            point = start + timedelta(days=step * (7 if interval == "weekly" else 1))
        if point > end:
            return
        yield point
        step += 1


class AnalysisService:
    """Read-only replay engine: snapshot lookup, delta replay and metrics."""

    def __init__(
        self,
        *,
        event_store: EventStore,
        snapshot_manager: SnapshotManager,
        clock: Clock = utcnow,
    ) -> None:
        self.event_store = event_store
        self.snapshot_manager = snapshot_manager
        self.clock = clock

    def get_financial_snapshot(
        self, user_id: int, as_of: datetime | date | None = None
    ) -> FinancialPosition:
        """Reconstruct the user's finances as of ``as_of`` (default: now).

        A plain ``date`` means the end of that day.
        """

        as_of_at = to_utc_naive(as_of) if as_of is not None else self.clock()
        self._maintain_checkpoints(user_id)

        base = self.snapshot_manager.load_base(user_id, as_of_at)
        delta = self.event_store.events_between(user_id, after=base.as_of, up_to=as_of_at)
        state = replay(delta, base.state)
        return FinancialPosition(
            as_of=as_of_at,
            state=state,
            metrics=compute_metrics(state),
            base_snapshot_date=base.as_of,
            replayed_events=len(delta),
        )

    def get_financial_trajectory(
        self,
        user_id: int,
        start: datetime | date,
        end: datetime | date,
        interval: str = "monthly",
    ) -> list[TrajectoryPoint]:
        """Financial positions at each interval boundary in ``[start, end]``, ascending.

        The replay is carried forward from one point to the next instead of starting
        over from the nearest snapshot for every point.
        """

        start_at, end_at = to_utc_naive(start), to_utc_naive(end)
        if start_at > end_at:
            raise ValueError("start must not be after end")
        points = list(interval_boundaries(start_at, end_at, interval))

        self._maintain_checkpoints(user_id)
        base = self.snapshot_manager.load_base(user_id, points[0])
        pending = self.event_store.events_between(user_id, after=base.as_of, up_to=points[-1])

        state = base.state
        position = 0
        previous: Optional[FinancialMetrics] = None
        trajectory: list[TrajectoryPoint] = []
        for point in points:
            while position < len(pending) and pending[position].timestamp <= point:
                state = root_reducer(state, pending[position])
                position += 1
            metrics = compute_metrics(state)
            velocity = None if previous is None else metrics.net_worth - previous.net_worth
            trajectory.append(
                TrajectoryPoint(date=point, state=state, metrics=metrics, net_worth_velocity=velocity)
            )
            previous = metrics
        return trajectory

    def replay_from_scratch(self, user_id: int, as_of: datetime | date | None = None) -> FinancialState:
        """Fold the whole history up to ``as_of`` from the empty state, ignoring snapshots."""

        as_of_at = to_utc_naive(as_of) if as_of is not None else self.clock()
        return replay(self.event_store.events_between(user_id, after=None, up_to=as_of_at))

    def audit_read_model(self, user_id: int, read_model: FinancialState) -> list[str]:
        """Compare the entity tables (as a state) with a full replay of the log.

        Returns human-readable discrepancies; an empty list means they agree.
        """

        replayed = self.replay_from_scratch(user_id)
        problems = describe_differences(replayed, read_model)
        if problems:
            logger.error(
                "Read model diverged from event log",
                extra={"user_id": user_id, "discrepancies": problems},
            )
        return problems

    def _maintain_checkpoints(self, user_id: int) -> None:
        try:
            self.snapshot_manager.ensure_monthly_checkpoints(user_id, now=self.clock())
        except (SQLAlchemyError, SnapshotError) as exc:
            logger.warning(
                "Checkpoint maintenance failed; continuing with a longer replay",
                extra={"user_id": user_id, "error": str(exc)},
            )


def describe_differences(replayed: FinancialState, read_model: FinancialState) -> list[str]:
    """List differences between two states, keyed by container and id."""

    problems: list[str] = []
    for container in ("assets", "liabilities", "incomes", "expenses"):
        expected = getattr(replayed, container)
        actual = getattr(read_model, container)
        for key in sorted(set(expected) | set(actual)):
            if key not in actual:
                problems.append(f"{container}[{key}] missing from read model")
            elif key not in expected:
                problems.append(f"{container}[{key}] has no events")
            elif expected[key] != actual[key]:
                problems.append(f"{container}[{key}] differs: {expected[key]} != {actual[key]}")
    if replayed.cash_savings != read_model.cash_savings:
        problems.append(f"cash_savings differs: {replayed.cash_savings} != {read_model.cash_savings}")
    if replayed.currency is not None and replayed.currency != read_model.currency:
        problems.append(f"currency differs: {replayed.currency} != {read_model.currency}")
    return problems
