"""Tests for event payload validation and normalization."""

from __future__ import annotations

from decimal import Decimal

import pytest

from wealthline.domain.enums import ActionType, EntityType
from wealthline.domain.payloads import (
    IncomePayload,
    entity_subtype_for,
    safe_validate_event_payload,
    to_money,
    validate_event_payload,
    validate_event_values,
)
from wealthline.errors import ValidationError


def test_asset_with_empty_name_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        validate_event_payload("ASSET", {"name": "", "value": 10})

    assert excinfo.value.paths == ["name"]
    assert str(excinfo.value).startswith("Invalid ASSET event payload: name:")


def test_expense_with_negative_amount_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        validate_event_payload(EntityType.EXPENSE, {"name": "Rent", "amount": -5})

    assert excinfo.value.issues == [("amount", "must be greater than or equal to 0")]


def test_income_amount_string_is_normalized_to_exact_decimal():
    payload = validate_event_payload("INCOME", {"name": "Job", "amount": "1200.50", "type": "Earned"})

    assert isinstance(payload, IncomePayload)
    assert payload.amount == Decimal("1200.50")
    assert payload.amount.as_tuple().exponent == -2
    assert payload.as_json() == {"version": 1, "name": "Job", "amount": "1200.50", "type": "Earned"}


def test_floats_keep_their_decimal_literal():
    payload = validate_event_payload("ASSET", {"name": "Cash box", "value": 0.1})

    assert payload.value == Decimal("0.10")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (10, Decimal("10.00")),
        ("  99.9 ", Decimal("99.90")),
        ("10.500", Decimal("10.50")),
        ("9999999999999.99", Decimal("9999999999999.99")),
    ],
)
def test_to_money_normalizes(raw, expected):
    assert to_money(raw) == expected


@pytest.mark.parametrize("raw", [True, "abc", float("nan"), "Infinity", "10000000000000.00", None])
def test_to_money_rejects(raw):
    with pytest.raises(ValueError):
        to_money(raw)


def test_missing_fields_are_reported_together():
    with pytest.raises(ValidationError) as excinfo:
        validate_event_payload("LIABILITY", {})

    assert sorted(excinfo.value.paths) == ["name", "value"]


def test_non_mapping_payload_is_rejected():
    with pytest.raises(ValidationError, match="payload must be an object"):
        validate_event_payload("CASH_SAVINGS", ["not", "a", "dict"])


def test_unknown_entity_type_is_rejected():
    with pytest.raises(ValueError):
        validate_event_payload("PET", {"name": "Rex"})


def test_income_type_is_canonicalized_and_quadrant_upper_cased():
    payload = validate_event_payload(
        "INCOME", {"name": "Rent roll", "amount": 900, "type": "passive", "quadrant": " investor "}
    )

    assert payload.type == "Passive"
    assert payload.quadrant == "INVESTOR"
    assert entity_subtype_for("INCOME", payload) == "PASSIVE"


def test_entity_subtype_only_for_income():
    payload = validate_event_payload("ASSET", {"name": "Car", "value": 5000})

    assert entity_subtype_for("ASSET", payload) is None


def test_user_payload_keeps_unknown_preferences():
    payload = validate_event_payload(
        "USER", {"preferredCurrencyId": 2, "theme": "dark", "email": "a@b.io"}
    )

    dumped = payload.as_json()
    assert dumped["preferredCurrencyId"] == 2
    assert dumped["theme"] == "dark"


def test_user_payload_rejects_bad_email_and_currency():
    with pytest.raises(ValidationError) as excinfo:
        validate_event_payload("USER", {"email": "nobody", "preferredCurrencyId": 0})

    assert sorted(excinfo.value.paths) == ["email", "preferredCurrencyId"]


def test_newer_payload_version_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        validate_event_payload("ASSET", {"name": "House", "value": 1, "version": 2})

    assert excinfo.value.paths == ["version"]


def test_safe_validate_returns_result_instead_of_raising():
    bad = safe_validate_event_payload("ASSET", {"name": "", "value": 10})
    good = safe_validate_event_payload("ASSET", {"name": "House", "value": 10})

    assert bad.success is False
    assert bad.data is None
    assert "name" in bad.error
    assert good.success is True
    assert good.data.value == Decimal("10.00")


class TestEventValues:
    def test_create_requires_after_only(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_event_values(
                ActionType.CREATE, EntityType.ASSET, {"name": "x", "value": 1}, None
            )

        assert excinfo.value.paths == ["beforeValue", "afterValue"]

    def test_delete_requires_before_only(self):
        before, after = validate_event_values(
            "DELETE", "ASSET", {"name": "House", "value": "1"}, None
        )

        assert after is None
        assert before.value == Decimal("1.00")

    def test_update_prefixes_issue_paths(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_event_values(
                "UPDATE",
                "EXPENSE",
                {"name": "Rent", "amount": 1},
                {"name": "Rent", "amount": -1},
            )

        assert excinfo.value.paths == ["afterValue.amount"]
        assert "EXPENSE UPDATE event" in str(excinfo.value)


@pytest.mark.parametrize("raw", ["10.005", Decimal("0.001"), 0.125])
def test_to_money_rejects_sub_cent_amounts(raw):
    with pytest.raises(ValueError, match="at most 2 decimal places"):
        to_money(raw)


def test_sub_cent_payload_amount_is_a_validation_error():
    with pytest.raises(ValidationError, match="at most 2 decimal places"):
        validate_event_payload("EXPENSE", {"name": "Coffee", "amount": "3.999"})
