"""In-memory financial state produced by the reducers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from ..errors import SnapshotError

ZERO = Decimal("0.00")

# Layout tag for serialized snapshot data
STATE_FORMAT_VERSION = 1


@dataclass(frozen=True)
class AssetRecord:
    id: int
    name: str
    value: Decimal


@dataclass(frozen=True)
class LiabilityRecord:
    id: int
    name: str
    value: Decimal


@dataclass(frozen=True)
class IncomeRecord:
    id: int
    name: str
    amount: Decimal
    type: str
    quadrant: Optional[str] = None


@dataclass(frozen=True)
class ExpenseRecord:
    id: int
    name: str
    amount: Decimal


@dataclass(frozen=True)
class FinancialState:
    """Materialized view of one user's finances at a point in time.

    Treat instances as values: reducers build a new state for every event and never
    write into the containers of an existing one.
    """

    assets: Mapping[int, AssetRecord] = field(default_factory=dict)
    liabilities: Mapping[int, LiabilityRecord] = field(default_factory=dict)
    incomes: Mapping[int, IncomeRecord] = field(default_factory=dict)
    expenses: Mapping[int, ExpenseRecord] = field(default_factory=dict)
    cash_savings: Decimal = ZERO
    cash_savings_id: Optional[int] = None
    currency: Optional[int] = None

    @classmethod
    def empty(cls) -> "FinancialState":
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Serialize with records sorted by id and money as decimal strings."""

        return {
            "version": STATE_FORMAT_VERSION,
            "assets": [
                {"id": r.id, "name": r.name, "value": str(r.value)}
                for r in _sorted(self.assets)
            ],
            "liabilities": [
                {"id": r.id, "name": r.name, "value": str(r.value)}
                for r in _sorted(self.liabilities)
            ],
            "incomes": [
                {
                    "id": r.id,
                    "name": r.name,
                    "amount": str(r.amount),
                    "type": r.type,
                    "quadrant": r.quadrant,
                }
                for r in _sorted(self.incomes)
            ],
            "expenses": [
                {"id": r.id, "name": r.name, "amount": str(r.amount)}
                for r in _sorted(self.expenses)
            ],
            "cashSavings": str(self.cash_savings),
            "cashSavingsId": self.cash_savings_id,
            "currency": self.currency,
        }

    def to_json(self) -> str:
        """Canonical JSON text; equal states always produce identical strings."""

        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FinancialState":
        """Rebuild a state from :meth:`to_dict` output.

        Raises:
            SnapshotError: if the data is malformed or from an unknown layout.
        """

        try:
            version = data.get("version", 1)
            if version != STATE_FORMAT_VERSION:
                raise SnapshotError(f"Unsupported snapshot data version: {version}")
            return cls(
                assets={
                    int(row["id"]): AssetRecord(int(row["id"]), row["name"], Decimal(row["value"]))
                    for row in data.get("assets", [])
                },
                liabilities={
                    int(row["id"]): LiabilityRecord(
                        int(row["id"]), row["name"], Decimal(row["value"])
                    )
                    for row in data.get("liabilities", [])
                },
                incomes={
                    int(row["id"]): IncomeRecord(
                        int(row["id"]),
                        row["name"],
                        Decimal(row["amount"]),
                        row["type"],
                        row.get("quadrant"),
                    )
                    for row in data.get("incomes", [])
                },
                expenses={
                    int(row["id"]): ExpenseRecord(int(row["id"]), row["name"], Decimal(row["amount"]))
                    for row in data.get("expenses", [])
                },
                cash_savings=Decimal(data.get("cashSavings", "0.00")),
                cash_savings_id=data.get("cashSavingsId"),
                currency=data.get("currency"),
            )
        except (KeyError, TypeError, ValueError, InvalidOperation, AttributeError) as exc:
            raise SnapshotError(f"Malformed snapshot data: {exc}") from exc


def _sorted(container: Mapping[int, Any]) -> list[Any]:
    return [container[key] for key in sorted(container)]
