"""Pytest configuration and shared fixtures for Wealthline tests.

Every test gets its own SQLite file inside ``tmp_path`` and a controllable clock, so
checkpoint and trajectory behaviour is reproducible.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from wealthline.config import TestConfig
from wealthline.context import create_app_context
from wealthline.domain.enums import ActionType, EntityType
from wealthline.infra.database import create_db_engine, create_session_factory, init_database
from wealthline.models import User

# =============================================================================
# Clock
# =============================================================================


class FixedClock:
    """Callable clock that only moves when a test says so."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 6, 15, 12, 0, 0))


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_path):
    return TestConfig(tmp_path)


@pytest.fixture
def db_engine(config):
    """Create an isolated SQLite database with the schema and reference rows."""

    engine = create_db_engine(config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def app_context(config, clock):
    """Fully wired services on the test database."""

    ctx = create_app_context(config, clock=clock)
    yield ctx
    ctx.dispose()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(app_context) -> User:
    """Default user, registered at the start of 2024."""

    return app_context.entities.create_user(
        name="tester", email="tester@example.com", occurred_at=datetime(2024, 1, 1)
    )


@pytest.fixture
def append_event(app_context, user):
    """Factory appending raw events for the default user through the event store."""

    def _append(
        entity_type: EntityType | str,
        action_type: ActionType | str,
        entity_id: int,
        *,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
        at: Optional[datetime] = None,
        user_id: Optional[int] = None,
    ):
        return app_context.event_store.append(
            user_id=user_id or user.id,
            entity_id=entity_id,
            action_type=action_type,
            entity_type=entity_type,
            before_value=before,
            after_value=after,
            timestamp=at,
        )

    return _append


def make_event(
    event_id: int,
    entity_type: EntityType,
    action_type: ActionType,
    entity_id: int,
    *,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
    timestamp: Optional[datetime] = None,
) -> SimpleNamespace:
    """In-memory stand-in for an Event row, for reducer tests."""

    return SimpleNamespace(
        id=event_id,
        timestamp=timestamp or datetime(2024, 1, 1) + timedelta(minutes=event_id),
        action_type=action_type.value,
        entity_type=entity_type.value,
        entity_id=entity_id,
        before_value=before,
        after_value=after,
    )
