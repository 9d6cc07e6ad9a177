"""Validator-gated access to the append-only event log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..clock import Clock, to_utc_naive, utcnow
from ..domain.enums import ActionType, EntityType, coerce_action_type, coerce_entity_type
from ..domain.payloads import entity_subtype_for, validate_event_values
from ..domain.repositories import EventFilters, EventRepository, SnapshotRepository
from ..errors import PersistenceError, ValidationError
from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models.event import Event

logger = get_logger("event_store")


@dataclass
class EventPage:
    """One page of the activity feed."""

    events: list[Event]
    total: int
    limit: Optional[int]
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.events) < self.total


class EventStore:
    """Appends validated events and serves them back in ``(timestamp, id)`` order.

    Events are never changed or removed once appended.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        events: EventRepository,
        snapshots: SnapshotRepository,
        clock: Clock = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.events = events
        self.snapshots = snapshots
        self.clock = clock

    def append(
        self,
        *,
        user_id: int,
        entity_id: int,
        action_type: ActionType | str,
        entity_type: EntityType | str,
        before_value: Any = None,
        after_value: Any = None,
        timestamp: datetime | date | None = None,
        entity_subtype: Optional[str] = None,
        session: Session | None = None,
    ) -> Event:
        """Validate and append one event.

        Pass ``session`` to join the caller's transaction (the entity-table write);
        without it the event is committed on its own.

        Raises:
            ValidationError: required fields missing or a payload failed validation.
            PersistenceError: the store rejected the insert.
        """

        if session is None:
            with self.session_factory() as own_session:
                return self.append(
                    user_id=user_id,
                    entity_id=entity_id,
                    action_type=action_type,
                    entity_type=entity_type,
                    before_value=before_value,
                    after_value=after_value,
                    timestamp=timestamp,
                    entity_subtype=entity_subtype,
                    session=own_session,
                )

        missing = [
            (field_name, "is required")
            for field_name, value in (
                ("userId", user_id),
                ("entityId", entity_id),
                ("actionType", action_type),
                ("entityType", entity_type),
            )
            if value is None
        ]
        if missing:
            raise ValidationError(missing, context="event")
        try:
            action = coerce_action_type(action_type)
            kind = coerce_entity_type(entity_type)
        except ValueError as exc:
            raise ValidationError([("", str(exc))], context="event") from None

        before, after = validate_event_values(action, kind, before_value, after_value)
        occurred_at = to_utc_naive(timestamp) if timestamp is not None else self.clock()

        event = Event(
            timestamp=occurred_at,
            action_type=action.value,
            entity_type=kind.value,
            entity_subtype=entity_subtype or entity_subtype_for(kind, after or before),
            user_id=user_id,
            entity_id=entity_id,
            before_value=before.as_json() if before is not None else None,
            after_value=after.as_json() if after is not None else None,
        )
        try:
            stored = self.events.add(event, session=session)
            # snapshots at or after a back-dated event no longer match the log
            invalidated = self.snapshots.delete_from(
                user_id=user_id, since=occurred_at, session=session
            )
        except SQLAlchemyError as exc:
            logger.error(
                "Event append failed",
                extra={"user_id": user_id, "entity_type": kind.value, "entity_id": entity_id},
            )
            raise PersistenceError(f"Could not append {kind.value} {action.value} event") from exc

        if invalidated:
            logger.info(
                "Invalidated snapshots after back-dated event",
                extra={"user_id": user_id, "since": occurred_at.isoformat(), "count": invalidated},
            )
        logger.debug(
            "Event appended",
            extra={
                "event_id": stored.id,
                "user_id": user_id,
                "action_type": action.value,
                "entity_type": kind.value,
                "entity_id": entity_id,
            },
        )
        return stored

    def query(self, user_id: int, filters: EventFilters | None = None) -> list[Event]:
        """Events for ``user_id`` matching ``filters`` (ascending unless asked otherwise)."""

        return self.events.query(user_id=user_id, filters=filters)

    def page(self, user_id: int, filters: EventFilters | None = None) -> EventPage:
        """Paged listing plus total count, for the activity feed."""

        filters = filters or EventFilters()
        return EventPage(
            events=self.events.query(user_id=user_id, filters=filters),
            total=self.events.count(user_id=user_id, filters=filters),
            limit=filters.limit,
            offset=filters.offset,
        )

    def events_between(
        self, user_id: int, *, after: datetime | None, up_to: datetime
    ) -> list[Event]:
        """Replay window: ``after < timestamp <= up_to`` in ``(timestamp, id)`` order."""

        return self.events.query(user_id=user_id, filters=EventFilters(after=after, end=up_to))

    def earliest_timestamp(self, user_id: int) -> Optional[datetime]:
        return self.events.earliest_timestamp(user_id=user_id)

    def latest_event_id(
        self, user_id: int, *, up_to: datetime | None = None, session: Session | None = None
    ) -> Optional[int]:
        """Highest event id appended so far, optionally limited to ``timestamp <= up_to``."""

        return self.events.latest_id(user_id=user_id, up_to=up_to, session=session)
