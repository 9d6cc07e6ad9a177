"""Pure state transitions: ``(FinancialState, event) -> FinancialState``.

Reducers read nothing but their two arguments: no I/O, no clock, no globals. Replaying
the same events from the same starting state therefore always yields an identical state.
Stored payloads are re-parsed through the payload models before use, so every payload
version ever written must stay readable by :mod:`wealthline.domain.payloads`.
"""

from __future__ import annotations

from dataclasses import replace
from functools import reduce
from typing import Any, Callable, Iterable, Optional, Protocol

from ..errors import ReplayCorruptionError, ValidationError
from .enums import ActionType, EntityType, resolve_quadrant
from .payloads import (
    AssetPayload,
    CashSavingsPayload,
    EventPayload,
    ExpensePayload,
    IncomePayload,
    LiabilityPayload,
    UserPayload,
    validate_event_payload,
)
from .state import ZERO, AssetRecord, ExpenseRecord, FinancialState, IncomeRecord, LiabilityRecord


class EventLike(Protocol):
    """Anything shaped like a stored event row."""

    id: Optional[int]
    action_type: str
    entity_type: str
    entity_id: int
    before_value: Optional[dict[str, Any]]
    after_value: Optional[dict[str, Any]]


Reducer = Callable[[FinancialState, EventLike], FinancialState]


def _corruption(message: str, event: EventLike) -> ReplayCorruptionError:
    return ReplayCorruptionError(
        message,
        event_id=event.id,
        entity_type=str(event.entity_type),
        entity_id=event.entity_id,
    )


def _action(event: EventLike) -> ActionType:
    try:
        return ActionType(event.action_type)
    except ValueError:
        raise _corruption(f"Unknown action type {event.action_type!r}", event) from None


def _after_payload(event: EventLike, entity_type: EntityType) -> EventPayload:
    if event.after_value is None:
        raise _corruption("Event is missing afterValue", event)
    try:
        return validate_event_payload(entity_type, event.after_value)
    except ValidationError as exc:
        raise _corruption(f"Stored payload is unreadable: {exc}", event) from exc


def _apply_keyed(
    state: FinancialState,
    event: EventLike,
    *,
    container: str,
    entity_type: EntityType,
    build: Callable[[int, Any], Any],
) -> FinancialState:
    """Shared CREATE/UPDATE/DELETE rules for id-keyed collections."""

    action = _action(event)
    records = getattr(state, container)
    key = event.entity_id

    if action is ActionType.DELETE:
        if key not in records:
            # delete-after-delete is tolerated
            return state
        remaining = {k: v for k, v in records.items() if k != key}
        return replace(state, **{container: remaining})

    if action is ActionType.CREATE and key in records:
        raise _corruption("CREATE for an entity that already exists", event)
    if action is ActionType.UPDATE and key not in records:
        raise _corruption("UPDATE for an entity that does not exist", event)

    record = build(key, _after_payload(event, entity_type))
    return replace(state, **{container: {**records, key: record}})


def reduce_asset(state: FinancialState, event: EventLike) -> FinancialState:
    def build(key: int, payload: AssetPayload) -> AssetRecord:
        return AssetRecord(id=key, name=payload.name, value=payload.value)

    return _apply_keyed(state, event, container="assets", entity_type=EntityType.ASSET, build=build)


def reduce_liability(state: FinancialState, event: EventLike) -> FinancialState:
    def build(key: int, payload: LiabilityPayload) -> LiabilityRecord:
        return LiabilityRecord(id=key, name=payload.name, value=payload.value)

    return _apply_keyed(
        state, event, container="liabilities", entity_type=EntityType.LIABILITY, build=build
    )


def reduce_expense(state: FinancialState, event: EventLike) -> FinancialState:
    def build(key: int, payload: ExpensePayload) -> ExpenseRecord:
        return ExpenseRecord(id=key, name=payload.name, amount=payload.amount)

    return _apply_keyed(state, event, container="expenses", entity_type=EntityType.EXPENSE, build=build)


def reduce_income(state: FinancialState, event: EventLike) -> FinancialState:
    def build(key: int, payload: IncomePayload) -> IncomeRecord:
        return IncomeRecord(
            id=key,
            name=payload.name,
            amount=payload.amount,
            type=payload.type,
            quadrant=resolve_quadrant(payload.type, payload.quadrant),
        )

    return _apply_keyed(state, event, container="incomes", entity_type=EntityType.INCOME, build=build)


def reduce_cash_savings(state: FinancialState, event: EventLike) -> FinancialState:
    """Cash savings is a per-user singleton keyed by its row id."""

    action = _action(event)
    if action is ActionType.DELETE:
        if state.cash_savings_id != event.entity_id:
            return state
        return replace(state, cash_savings=ZERO, cash_savings_id=None)

    if action is ActionType.CREATE and state.cash_savings_id is not None:
        raise _corruption("CREATE for cash savings that already exist", event)
    if action is ActionType.UPDATE and state.cash_savings_id != event.entity_id:
        raise _corruption("UPDATE for cash savings that do not exist", event)

    payload: CashSavingsPayload = _after_payload(event, EntityType.CASH_SAVINGS)  # type: ignore[assignment]
    return replace(state, cash_savings=payload.amount, cash_savings_id=event.entity_id)


def reduce_user(state: FinancialState, event: EventLike) -> FinancialState:
    """User events only carry preferences; the profile itself is not part of the state."""

    action = _action(event)
    if action is ActionType.DELETE:
        return state
    payload: UserPayload = _after_payload(event, EntityType.USER)  # type: ignore[assignment]
    if payload.preferred_currency_id is None:
        return state
    return replace(state, currency=payload.preferred_currency_id)


ENTITY_REDUCERS: dict[EntityType, Reducer] = {
    EntityType.ASSET: reduce_asset,
    EntityType.LIABILITY: reduce_liability,
    EntityType.INCOME: reduce_income,
    EntityType.EXPENSE: reduce_expense,
    EntityType.CASH_SAVINGS: reduce_cash_savings,
    EntityType.USER: reduce_user,
}


def root_reducer(state: FinancialState, event: EventLike) -> FinancialState:
    """Dispatch one event to the reducer for its entity type."""

    try:
        entity_type = EntityType(event.entity_type)
    except ValueError:
        raise _corruption(f"Unknown entity type {event.entity_type!r}", event) from None
    return ENTITY_REDUCERS[entity_type](state, event)


def replay(events: Iterable[EventLike], initial: FinancialState | None = None) -> FinancialState:
    """Fold ``events`` (already in ``(timestamp, id)`` order) onto ``initial``."""

    return reduce(root_reducer, events, initial if initial is not None else FinancialState.empty())
