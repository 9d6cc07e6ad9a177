"""Typed event payloads and their validation.

``beforeValue``/``afterValue`` are stored in untyped JSON columns, so every payload is
parsed into one of the models below on the way in (before an event is appended) and
again on the way out (before a reducer sees it). Money fields accept a number, a
``Decimal`` or a numeric string and are normalized to an exact two-place ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from .enums import ActionType, EntityType, IncomeType, coerce_action_type, coerce_entity_type

# Newest payload layout understood by the reducers. Payloads without a tag are version 1.
CURRENT_PAYLOAD_VERSION = 1

MONEY_QUANTUM = Decimal("0.01")
# NUMERIC(15, 2): thirteen integer digits plus cents
MAX_MONEY = Decimal("9999999999999.99")

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def to_money(value: Any) -> Decimal:
    """Normalize a number-like value to a non-negative cents ``Decimal``.

    The value is never rounded: anything finer than a cent is rejected, while trailing
    zeros (``"10.500"``) are accepted.
    """

    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # repr() gives the shortest round-tripping literal, so 0.1 stays 0.1
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError("must be a valid number string") from None
    else:
        raise ValueError("must be a number, a decimal or a numeric string")

    if not amount.is_finite():
        raise ValueError("must be a finite number")
    if amount < 0:
        raise ValueError("must be greater than or equal to 0")
    quantized = amount.quantize(MONEY_QUANTUM)
    if quantized != amount:
        raise ValueError("must have at most 2 decimal places")
    amount = quantized
    if amount > MAX_MONEY:
        raise ValueError("exceeds 15 digits of precision")
    return amount


Money = Annotated[Decimal, BeforeValidator(to_money)]
RequiredName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class EventPayload(BaseModel):
    """Common base: frozen, extra keys dropped, optional ``version`` tag."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    version: int = Field(default=1, ge=1, le=CURRENT_PAYLOAD_VERSION)

    def as_json(self) -> dict[str, Any]:
        """Canonical JSON form stored in the event log (money as decimal strings)."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AssetPayload(EventPayload):
    name: RequiredName
    value: Money


class LiabilityPayload(EventPayload):
    name: RequiredName
    value: Money


class ExpensePayload(EventPayload):
    name: RequiredName
    amount: Money


class IncomePayload(EventPayload):
    name: RequiredName
    amount: Money
    type: RequiredName
    quadrant: Optional[str] = None

    @field_validator("type")
    @classmethod
    def _canonical_type(cls, value: str) -> str:
        try:
            return IncomeType.parse(value).value
        except ValueError:
            return value

    @field_validator("quadrant")
    @classmethod
    def _upper_quadrant(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().upper()
        return value or None


class CashSavingsPayload(EventPayload):
    amount: Money


class UserPayload(EventPayload):
    """Open preference bag; unknown keys are kept for later readers."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=_EMAIL_PATTERN)
    preferred_currency_id: Optional[int] = Field(default=None, alias="preferredCurrencyId", gt=0)


PAYLOAD_MODELS: dict[EntityType, type[EventPayload]] = {
    EntityType.ASSET: AssetPayload,
    EntityType.LIABILITY: LiabilityPayload,
    EntityType.EXPENSE: ExpensePayload,
    EntityType.INCOME: IncomePayload,
    EntityType.CASH_SAVINGS: CashSavingsPayload,
    EntityType.USER: UserPayload,
}

def _issues_from(exc: PydanticValidationError) -> list[tuple[str, str]]:
    issues = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"])
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append((path, message))
    return issues


def validate_event_payload(entity_type: EntityType | str, payload: Any) -> EventPayload:
    """Validate and normalize one payload for ``entity_type``.

    Raises:
        ValidationError: with one ``(path, message)`` issue per failed field.
    """

    entity_type = coerce_entity_type(entity_type)
    model = PAYLOAD_MODELS.get(entity_type)
    if model is None:  # pragma: no cover - every EntityType is registered
        raise ValidationError([("", f"no schema for entity type {entity_type}")])
    if isinstance(payload, model):
        return payload
    if isinstance(payload, EventPayload):
        payload = payload.as_json()
    if not isinstance(payload, Mapping):
        raise ValidationError(
            [("", "payload must be an object")], context=f"{entity_type.value} event payload"
        )
    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(_issues_from(exc), context=f"{entity_type.value} event payload") from None


@dataclass(frozen=True)
class ValidationResult:
    """Non-throwing outcome of :func:`safe_validate_event_payload`."""

    success: bool
    data: Optional[EventPayload] = None
    error: Optional[str] = None
    issues: tuple[tuple[str, str], ...] = ()


def safe_validate_event_payload(entity_type: EntityType | str, payload: Any) -> ValidationResult:
    try:
        data = validate_event_payload(entity_type, payload)
    except ValidationError as exc:
        return ValidationResult(success=False, error=str(exc), issues=tuple(exc.issues))
    return ValidationResult(success=True, data=data)


def validate_event_values(
    action_type: ActionType | str,
    entity_type: EntityType | str,
    before_value: Any,
    after_value: Any,
) -> tuple[Optional[EventPayload], Optional[EventPayload]]:
    """Check that before/after presence matches the action and validate each side.

    CREATE carries only ``afterValue``, DELETE only ``beforeValue`` and UPDATE both.
    """

    action_type = coerce_action_type(action_type)
    entity_type = coerce_entity_type(entity_type)
    needs_before = action_type in (ActionType.UPDATE, ActionType.DELETE)
    needs_after = action_type in (ActionType.CREATE, ActionType.UPDATE)

    issues: list[tuple[str, str]] = []
    parsed: dict[str, Optional[EventPayload]] = {"beforeValue": None, "afterValue": None}
    for field_name, raw, required in (
        ("beforeValue", before_value, needs_before),
        ("afterValue", after_value, needs_after),
    ):
        if raw is None:
            if required:
                issues.append((field_name, f"required for {action_type.value}"))
            continue
        if not required:
            issues.append((field_name, f"must be absent for {action_type.value}"))
            continue
        try:
            parsed[field_name] = validate_event_payload(entity_type, raw)
        except ValidationError as exc:
            issues.extend(
                (f"{field_name}.{path}" if path else field_name, message)
                for path, message in exc.issues
            )

    if issues:
        raise ValidationError(issues, context=f"{entity_type.value} {action_type.value} event")
    return parsed["beforeValue"], parsed["afterValue"]


def entity_subtype_for(entity_type: EntityType | str, payload: Optional[EventPayload]) -> Optional[str]:
    """Finer classification recorded on the event (income type for INCOME)."""

    if coerce_entity_type(entity_type) is EntityType.INCOME and isinstance(payload, IncomePayload):
        return payload.type.upper()
    return None
