"""Derived metrics computed from a reconstructed :class:`FinancialState`."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from .enums import IncomeType
from .state import ZERO, FinancialState

RATIO_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class FinancialMetrics:
    """Headline numbers for the dashboard.

    Ratios whose denominator is zero are ``None`` rather than infinite; in particular
    ``solvency_ratio`` is ``None`` for a user without liabilities.
    """

    total_assets: Decimal
    total_liabilities: Decimal
    total_income: Decimal
    total_expenses: Decimal
    earned_income: Decimal
    portfolio_income: Decimal
    passive_income: Decimal
    cash_savings: Decimal
    net_worth: Decimal
    cashflow: Decimal
    freedom_gap: Decimal
    asset_efficiency: Optional[Decimal]
    passive_coverage_ratio: Optional[Decimal]
    solvency_ratio: Optional[Decimal]

    def to_dict(self) -> dict[str, Any]:
        return {key: (None if value is None else str(value)) for key, value in asdict(self).items()}


def _ratio(numerator: Decimal, denominator: Decimal) -> Optional[Decimal]:
    if denominator == 0:
        return None
    return (numerator / denominator).quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP)


def _income_by_type(state: FinancialState, income_type: IncomeType) -> Decimal:
    return sum(
        (record.amount for record in state.incomes.values() if record.type == income_type.value),
        ZERO,
    )


def compute_metrics(state: FinancialState) -> FinancialMetrics:
    """Compute totals and ratios; cash savings count as an asset."""

    total_assets = sum((record.value for record in state.assets.values()), ZERO) + state.cash_savings
    total_liabilities = sum((record.value for record in state.liabilities.values()), ZERO)
    total_income = sum((record.amount for record in state.incomes.values()), ZERO)
    total_expenses = sum((record.amount for record in state.expenses.values()), ZERO)

    earned = _income_by_type(state, IncomeType.EARNED)
    portfolio = _income_by_type(state, IncomeType.PORTFOLIO)
    passive = _income_by_type(state, IncomeType.PASSIVE)
    freedom_income = passive + portfolio

    return FinancialMetrics(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_income=total_income,
        total_expenses=total_expenses,
        earned_income=earned,
        portfolio_income=portfolio,
        passive_income=passive,
        cash_savings=state.cash_savings,
        net_worth=total_assets - total_liabilities,
        cashflow=total_income - total_expenses,
        freedom_gap=total_expenses - freedom_income,
        asset_efficiency=_ratio(freedom_income, total_assets),
        passive_coverage_ratio=_ratio(freedom_income, total_expenses),
        solvency_ratio=_ratio(total_assets, total_liabilities),
    )
