"""Balance sheet read model: assets, liabilities and cash savings."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Asset(SQLModel, table=True):
    """Something the user owns, valued in the preferred currency."""

    __tablename__: ClassVar[str] = "asset"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    value: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2, nullable=False)


class Liability(SQLModel, table=True):
    """Outstanding debt tracked on the balance sheet."""

    __tablename__: ClassVar[str] = "liability"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    value: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2, nullable=False)


class CashSavings(SQLModel, table=True):
    """Single cash balance per user."""

    __tablename__: ClassVar[str] = "cash_savings"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, unique=True)
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2, nullable=False)
