"""Income statement read model: income lines and expenses."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class IncomeLine(SQLModel, table=True):
    """Recurring income; ``type`` is Earned, Portfolio or Passive."""

    __tablename__: ClassVar[str] = "income_line"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2, nullable=False)
    type: str = Field(nullable=False, max_length=32)
    quadrant: Optional[str] = Field(default=None, max_length=32)


class Expense(SQLModel, table=True):
    """Recurring expense."""

    __tablename__: ClassVar[str] = "expense"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2, nullable=False)
