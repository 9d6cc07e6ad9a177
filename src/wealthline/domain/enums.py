"""Enumerations shared by events, payloads and reducers."""

from __future__ import annotations

from enum import Enum


class ActionType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EntityType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    CASH_SAVINGS = "CASH_SAVINGS"
    USER = "USER"


class IncomeType(str, Enum):
    """Income classification; ``Portfolio`` and ``Passive`` count toward freedom."""

    EARNED = "Earned"
    PORTFOLIO = "Portfolio"
    PASSIVE = "Passive"

    @classmethod
    def parse(cls, raw: str) -> "IncomeType":
        lowered = raw.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        raise ValueError(f"Unknown income type: {raw!r}")


class IncomeQuadrant(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    SELF_EMPLOYED = "SELF_EMPLOYED"
    BUSINESS_OWNER = "BUSINESS_OWNER"
    INVESTOR = "INVESTOR"


DEFAULT_QUADRANTS: dict[IncomeType, IncomeQuadrant] = {
    IncomeType.EARNED: IncomeQuadrant.EMPLOYEE,
    IncomeType.PORTFOLIO: IncomeQuadrant.INVESTOR,
    IncomeType.PASSIVE: IncomeQuadrant.BUSINESS_OWNER,
}


def coerce_entity_type(value: "EntityType | str") -> EntityType:
    if isinstance(value, EntityType):
        return value
    return EntityType(str(value).strip().upper())


def coerce_action_type(value: "ActionType | str") -> ActionType:
    if isinstance(value, ActionType):
        return value
    return ActionType(str(value).strip().upper())


def resolve_quadrant(income_type: str, quadrant: "str | None") -> "str | None":
    """Return ``quadrant`` or, when absent, the default for a known income type."""

    if quadrant:
        return quadrant
    try:
        return DEFAULT_QUADRANTS[IncomeType.parse(income_type)].value
    except ValueError:
        return None
