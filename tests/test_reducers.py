"""Tests for the pure reducers and replay."""

from __future__ import annotations

from decimal import Decimal

import pytest

from tests.conftest import make_event
from wealthline.domain.enums import ActionType, EntityType
from wealthline.domain.metrics import compute_metrics
from wealthline.domain.reducers import replay, root_reducer
from wealthline.domain.state import FinancialState
from wealthline.errors import ReplayCorruptionError

A, E = ActionType, EntityType


def _history():
    return [
        make_event(1, E.ASSET, A.CREATE, 10, after={"name": "House", "value": "300000"}),
        make_event(2, E.LIABILITY, A.CREATE, 20, after={"name": "Mortgage", "value": 250000}),
        make_event(3, E.INCOME, A.CREATE, 30, after={"name": "Job", "amount": "5000", "type": "Earned"}),
        make_event(4, E.EXPENSE, A.CREATE, 40, after={"name": "Rent", "amount": "1500.25"}),
        make_event(5, E.CASH_SAVINGS, A.CREATE, 50, after={"amount": "12000"}),
        make_event(
            6,
            E.ASSET,
            A.UPDATE,
            10,
            before={"name": "House", "value": "300000"},
            after={"name": "House", "value": "320000"},
        ),
        make_event(7, E.EXPENSE, A.DELETE, 40, before={"name": "Rent", "amount": "1500.25"}),
    ]


def test_replay_builds_expected_state():
    state = replay(_history())

    assert state.assets[10].value == Decimal("320000.00")
    assert state.liabilities[20].name == "Mortgage"
    assert state.incomes[30].quadrant == "EMPLOYEE"
    assert state.expenses == {}
    assert state.cash_savings == Decimal("12000.00")
    assert state.cash_savings_id == 50


def test_replay_is_deterministic():
    first = replay(_history())
    second = replay(_history())

    assert first == second
    assert first.to_json() == second.to_json()


def test_reducers_do_not_mutate_previous_state():
    start = replay(_history()[:2])
    before = start.to_json()

    root_reducer(start, make_event(9, E.ASSET, A.DELETE, 10, before={"name": "House", "value": 1}))

    assert start.to_json() == before
    assert 10 in start.assets


def test_replay_onto_initial_state_continues_history():
    events = _history()
    midway = replay(events[:3])

    assert replay(events[3:], midway) == replay(events)


def test_delete_of_missing_entity_is_a_noop():
    state = replay(_history())

    after = root_reducer(state, make_event(8, E.ASSET, A.DELETE, 999, before={"name": "x", "value": 1}))

    assert after == state


def test_delete_twice_is_tolerated():
    events = _history() + [
        make_event(8, E.LIABILITY, A.DELETE, 20, before={"name": "Mortgage", "value": 250000}),
        make_event(9, E.LIABILITY, A.DELETE, 20, before={"name": "Mortgage", "value": 250000}),
    ]

    assert replay(events).liabilities == {}


def test_create_on_existing_key_is_corruption():
    events = _history() + [make_event(8, E.ASSET, A.CREATE, 10, after={"name": "Again", "value": 1})]

    with pytest.raises(ReplayCorruptionError) as excinfo:
        replay(events)

    assert excinfo.value.event_id == 8
    assert excinfo.value.entity_type == "ASSET"
    assert excinfo.value.entity_id == 10


def test_update_on_missing_key_is_corruption():
    event = make_event(
        1, E.EXPENSE, A.UPDATE, 5, before={"name": "Gym", "amount": 30}, after={"name": "Gym", "amount": 35}
    )

    with pytest.raises(ReplayCorruptionError, match="does not exist"):
        replay([event])


def test_unreadable_stored_payload_is_corruption():
    event = make_event(1, E.ASSET, A.CREATE, 1, after={"name": "Boat", "value": -10})

    with pytest.raises(ReplayCorruptionError, match="unreadable"):
        replay([event])


def test_unknown_entity_type_is_corruption():
    event = make_event(1, E.ASSET, A.CREATE, 1, after={"name": "Boat", "value": 10})
    event.entity_type = "YACHT"

    with pytest.raises(ReplayCorruptionError, match="Unknown entity type"):
        root_reducer(FinancialState.empty(), event)


@pytest.mark.parametrize(
    "income_type, quadrant, expected",
    [
        ("Earned", None, "EMPLOYEE"),
        ("Portfolio", None, "INVESTOR"),
        ("Passive", None, "BUSINESS_OWNER"),
        ("Earned", "self_employed", "SELF_EMPLOYED"),
        ("Royalties", None, None),
    ],
)
def test_income_quadrant_falls_back_to_type_default(income_type, quadrant, expected):
    after = {"name": "Line", "amount": 100, "type": income_type}
    if quadrant:
        after["quadrant"] = quadrant

    state = replay([make_event(1, E.INCOME, A.CREATE, 1, after=after)])

    assert state.incomes[1].quadrant == expected


def test_cash_savings_is_a_singleton():
    created = replay([make_event(1, E.CASH_SAVINGS, A.CREATE, 7, after={"amount": 100})])

    with pytest.raises(ReplayCorruptionError):
        root_reducer(created, make_event(2, E.CASH_SAVINGS, A.CREATE, 8, after={"amount": 5}))

    updated = root_reducer(
        created,
        make_event(2, E.CASH_SAVINGS, A.UPDATE, 7, before={"amount": 100}, after={"amount": "250.5"}),
    )
    assert updated.cash_savings == Decimal("250.50")

    cleared = root_reducer(updated, make_event(3, E.CASH_SAVINGS, A.DELETE, 7, before={"amount": 250.5}))
    assert cleared.cash_savings == Decimal("0.00")
    assert cleared.cash_savings_id is None


def test_user_events_track_preferred_currency():
    state = replay(
        [
            make_event(1, E.USER, A.CREATE, 1, after={"name": "ann", "preferredCurrencyId": 1}),
            make_event(
                2, E.USER, A.UPDATE, 1, before={"preferredCurrencyId": 1}, after={"preferredCurrencyId": 3}
            ),
            make_event(3, E.USER, A.DELETE, 1, before={"preferredCurrencyId": 3}),
        ]
    )

    assert state.currency == 3


def test_end_to_end_net_worth_scenario():
    events = [
        make_event(1, E.ASSET, A.CREATE, 1, after={"name": "House", "value": 300000}),
        make_event(2, E.LIABILITY, A.CREATE, 2, after={"name": "Mortgage", "value": 250000}),
    ]
    assert compute_metrics(replay(events)).net_worth == Decimal("50000.00")

    events.append(
        make_event(
            3, E.ASSET, A.UPDATE, 1,
            before={"name": "House", "value": 300000},
            after={"name": "House", "value": 320000},
        )
    )
    assert compute_metrics(replay(events)).net_worth == Decimal("70000.00")

    events.append(make_event(4, E.LIABILITY, A.DELETE, 2, before={"name": "Mortgage", "value": 250000}))
    assert compute_metrics(replay(events)).net_worth == Decimal("320000.00")
