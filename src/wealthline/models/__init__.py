"""SQLModel table exports."""

from .balance_sheet import Asset, CashSavings, Liability
from .event import Event
from .income_statement import Expense, IncomeLine
from .snapshot import FinancialSnapshot
from .user import Currency, User

__all__ = [
    "Asset",
    "CashSavings",
    "Currency",
    "Event",
    "Expense",
    "FinancialSnapshot",
    "IncomeLine",
    "Liability",
    "User",
]
