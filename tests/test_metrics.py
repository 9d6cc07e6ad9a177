"""Tests for derived financial metrics."""

from decimal import Decimal

from wealthline.domain.metrics import compute_metrics
from wealthline.domain.state import (
    AssetRecord,
    ExpenseRecord,
    FinancialState,
    IncomeRecord,
    LiabilityRecord,
)


def _state(**overrides):
    base = dict(
        assets={1: AssetRecord(1, "Index fund", Decimal("200000.00"))},
        liabilities={2: LiabilityRecord(2, "Car loan", Decimal("15000.00"))},
        incomes={
            3: IncomeRecord(3, "Salary", Decimal("7000.00"), "Earned", "EMPLOYEE"),
            4: IncomeRecord(4, "Dividends", Decimal("600.00"), "Portfolio", "INVESTOR"),
            5: IncomeRecord(5, "Rental", Decimal("900.00"), "Passive", "BUSINESS_OWNER"),
        },
        expenses={6: ExpenseRecord(6, "Living", Decimal("4500.00"))},
        cash_savings=Decimal("10000.00"),
        cash_savings_id=9,
    )
    base.update(overrides)
    return FinancialState(**base)


def test_totals_and_income_breakdown():
    metrics = compute_metrics(_state())

    assert metrics.total_assets == Decimal("210000.00")
    assert metrics.total_liabilities == Decimal("15000.00")
    assert metrics.total_income == Decimal("8500.00")
    assert metrics.earned_income == Decimal("7000.00")
    assert metrics.portfolio_income == Decimal("600.00")
    assert metrics.passive_income == Decimal("900.00")
    assert metrics.net_worth == Decimal("195000.00")
    assert metrics.cashflow == Decimal("4000.00")
    assert metrics.freedom_gap == Decimal("3000.00")


def test_ratios_are_rounded_to_four_places():
    metrics = compute_metrics(_state())

    assert metrics.asset_efficiency == Decimal("0.0071")
    assert metrics.passive_coverage_ratio == Decimal("0.3333")
    assert metrics.solvency_ratio == Decimal("14.0000")


def test_zero_denominators_give_none():
    metrics = compute_metrics(FinancialState.empty())

    assert metrics.net_worth == Decimal("0.00")
    assert metrics.asset_efficiency is None
    assert metrics.passive_coverage_ratio is None
    assert metrics.solvency_ratio is None


def test_solvency_without_liabilities_is_none():
    metrics = compute_metrics(_state(liabilities={}))

    assert metrics.solvency_ratio is None
    assert metrics.net_worth == metrics.total_assets


def test_freedom_gap_goes_negative_when_passive_income_covers_expenses():
    metrics = compute_metrics(_state(expenses={6: ExpenseRecord(6, "Frugal", Decimal("1000.00"))}))

    assert metrics.freedom_gap == Decimal("-500.00")
    assert metrics.passive_coverage_ratio == Decimal("1.5000")


def test_to_dict_renders_decimals_as_strings():
    data = compute_metrics(_state(liabilities={})).to_dict()

    assert data["net_worth"] == "210000.00"
    assert data["solvency_ratio"] is None
