"""Write-side services for tracked entities.

Every create/update/delete writes the entity row (the read model) and appends the
matching event inside one transaction, so neither can be observed without the other.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..clock import Clock, utcnow
from ..domain.enums import ActionType, EntityType, coerce_entity_type, resolve_quadrant
from ..domain.payloads import EventPayload, validate_event_payload
from ..domain.state import AssetRecord, ExpenseRecord, FinancialState, IncomeRecord, LiabilityRecord
from ..errors import NotFoundError, PersistenceError, ValidationError
from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models import Asset, CashSavings, Expense, IncomeLine, Liability, User
from .event_store import EventStore

logger = get_logger("entities")

T = TypeVar("T")
Moment = Optional[Union[datetime, date]]

# Read-model table and the columns mirrored in the event payload, per entity type
ENTITY_TABLES: dict[EntityType, tuple[type[SQLModel], tuple[str, ...]]] = {
    EntityType.ASSET: (Asset, ("name", "value")),
    EntityType.LIABILITY: (Liability, ("name", "value")),
    EntityType.EXPENSE: (Expense, ("name", "amount")),
    EntityType.INCOME: (IncomeLine, ("name", "amount", "type", "quadrant")),
    EntityType.CASH_SAVINGS: (CashSavings, ("amount",)),
}


def _cents(value: Any) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class FinancialEntityService:
    """Create, update and delete balance-sheet and income-statement rows."""

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        event_store: EventStore,
        clock: Clock = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.event_store = event_store
        self.clock = clock

    # ------------------------------------------------------------------
    # Generic operations
    # ------------------------------------------------------------------

    def create(
        self,
        entity_type: EntityType | str,
        user_id: int,
        fields: Mapping[str, Any],
        *,
        occurred_at: Moment = None,
    ) -> SQLModel:
        kind = coerce_entity_type(entity_type)
        model, columns = self._table(kind)
        payload = validate_event_payload(kind, dict(fields))

        def write(session: Session) -> SQLModel:
            row = model(user_id=user_id)
            self._assign(row, payload, columns)
            session.add(row)
            session.flush()
            self.event_store.append(
                session=session,
                user_id=user_id,
                entity_id=row.id,
                action_type=ActionType.CREATE,
                entity_type=kind,
                after_value=payload,
                timestamp=occurred_at,
            )
            return row

        return self._transact(write, user_id=user_id, kind=kind, action=ActionType.CREATE)

    def update(
        self,
        entity_type: EntityType | str,
        user_id: int,
        entity_id: int,
        changes: Mapping[str, Any],
        *,
        occurred_at: Moment = None,
    ) -> SQLModel:
        kind = coerce_entity_type(entity_type)
        model, columns = self._table(kind)
        unknown = sorted(set(changes) - set(columns))
        if unknown:
            raise ValidationError(
                [(key, "is not an editable field") for key in unknown],
                context=f"{kind.value} update",
            )

        def write(session: Session) -> SQLModel:
            row = self._owned(session, model, user_id=user_id, entity_id=entity_id, kind=kind)
            before = self._row_payload(kind, row, columns)
            after = validate_event_payload(kind, {**before.as_json(), **changes})
            self._assign(row, after, columns)
            session.add(row)
            session.flush()
            self.event_store.append(
                session=session,
                user_id=user_id,
                entity_id=entity_id,
                action_type=ActionType.UPDATE,
                entity_type=kind,
                before_value=before,
                after_value=after,
                timestamp=occurred_at,
            )
            return row

        return self._transact(write, user_id=user_id, kind=kind, action=ActionType.UPDATE)

    def delete(
        self,
        entity_type: EntityType | str,
        user_id: int,
        entity_id: int,
        *,
        occurred_at: Moment = None,
    ) -> None:
        kind = coerce_entity_type(entity_type)
        model, columns = self._table(kind)

        def write(session: Session) -> None:
            row = self._owned(session, model, user_id=user_id, entity_id=entity_id, kind=kind)
            before = self._row_payload(kind, row, columns)
            session.delete(row)
            session.flush()
            self.event_store.append(
                session=session,
                user_id=user_id,
                entity_id=entity_id,
                action_type=ActionType.DELETE,
                entity_type=kind,
                before_value=before,
                timestamp=occurred_at,
            )

        self._transact(write, user_id=user_id, kind=kind, action=ActionType.DELETE)

    # ------------------------------------------------------------------
    # Entity-specific helpers used by controllers
    # ------------------------------------------------------------------

    def create_asset(self, user_id: int, *, name: str, value: Any, occurred_at: Moment = None) -> Asset:
        return self.create(EntityType.ASSET, user_id, {"name": name, "value": value}, occurred_at=occurred_at)  # type: ignore[return-value]

    def update_asset(self, user_id: int, asset_id: int, *, occurred_at: Moment = None, **changes: Any) -> Asset:
        return self.update(EntityType.ASSET, user_id, asset_id, changes, occurred_at=occurred_at)  # type: ignore[return-value]

    def delete_asset(self, user_id: int, asset_id: int, *, occurred_at: Moment = None) -> None:
        self.delete(EntityType.ASSET, user_id, asset_id, occurred_at=occurred_at)

    def create_liability(
        self, user_id: int, *, name: str, value: Any, occurred_at: Moment = None
    ) -> Liability:
        return self.create(EntityType.LIABILITY, user_id, {"name": name, "value": value}, occurred_at=occurred_at)  # type: ignore[return-value]

    def update_liability(
        self, user_id: int, liability_id: int, *, occurred_at: Moment = None, **changes: Any
    ) -> Liability:
        return self.update(EntityType.LIABILITY, user_id, liability_id, changes, occurred_at=occurred_at)  # type: ignore[return-value]

    def delete_liability(self, user_id: int, liability_id: int, *, occurred_at: Moment = None) -> None:
        self.delete(EntityType.LIABILITY, user_id, liability_id, occurred_at=occurred_at)

    def create_expense(self, user_id: int, *, name: str, amount: Any, occurred_at: Moment = None) -> Expense:
        return self.create(EntityType.EXPENSE, user_id, {"name": name, "amount": amount}, occurred_at=occurred_at)  # type: ignore[return-value]

    def update_expense(
        self, user_id: int, expense_id: int, *, occurred_at: Moment = None, **changes: Any
    ) -> Expense:
        return self.update(EntityType.EXPENSE, user_id, expense_id, changes, occurred_at=occurred_at)  # type: ignore[return-value]

    def delete_expense(self, user_id: int, expense_id: int, *, occurred_at: Moment = None) -> None:
        self.delete(EntityType.EXPENSE, user_id, expense_id, occurred_at=occurred_at)

    def create_income(
        self,
        user_id: int,
        *,
        name: str,
        amount: Any,
        type: str,
        quadrant: Optional[str] = None,
        occurred_at: Moment = None,
    ) -> IncomeLine:
        fields = {"name": name, "amount": amount, "type": type, "quadrant": quadrant}
        return self.create(EntityType.INCOME, user_id, fields, occurred_at=occurred_at)  # type: ignore[return-value]

    def update_income(
        self, user_id: int, income_id: int, *, occurred_at: Moment = None, **changes: Any
    ) -> IncomeLine:
        return self.update(EntityType.INCOME, user_id, income_id, changes, occurred_at=occurred_at)  # type: ignore[return-value]

    def delete_income(self, user_id: int, income_id: int, *, occurred_at: Moment = None) -> None:
        self.delete(EntityType.INCOME, user_id, income_id, occurred_at=occurred_at)

    def set_cash_savings(self, user_id: int, amount: Any, *, occurred_at: Moment = None) -> CashSavings:
        """Create the user's cash savings row on first use, update it afterwards."""

        existing = self.get_cash_savings(user_id)
        if existing is None:
            return self.create(EntityType.CASH_SAVINGS, user_id, {"amount": amount}, occurred_at=occurred_at)  # type: ignore[return-value]
        return self.update(  # type: ignore[return-value]
            EntityType.CASH_SAVINGS, user_id, existing.id, {"amount": amount}, occurred_at=occurred_at
        )

    def get_cash_savings(self, user_id: int) -> Optional[CashSavings]:
        with self.session_factory() as session:
            row = session.exec(select(CashSavings).where(CashSavings.user_id == user_id)).first()
            if row:
                session.expunge(row)
            return row

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(
        self,
        *,
        name: str,
        email: str,
        preferred_currency_id: int = 1,
        is_admin: bool = False,
        occurred_at: Moment = None,
    ) -> User:
        """Register a user row and its USER CREATE event."""

        payload = validate_event_payload(
            EntityType.USER,
            {"name": name, "email": email, "preferredCurrencyId": preferred_currency_id},
        )

        def write(session: Session) -> User:
            user = User(
                name=name.strip(),
                email=email.strip(),
                preferred_currency_id=preferred_currency_id,
                is_admin=is_admin,
            )
            session.add(user)
            session.flush()
            self.event_store.append(
                session=session,
                user_id=user.id,
                entity_id=user.id,
                action_type=ActionType.CREATE,
                entity_type=EntityType.USER,
                after_value=payload,
                timestamp=occurred_at,
            )
            return user

        return self._transact(write, user_id=None, kind=EntityType.USER, action=ActionType.CREATE)

    def update_user_preferences(
        self, user_id: int, *, occurred_at: Moment = None, **preferences: Any
    ) -> User:
        """Change name, email or preferred currency; records a USER UPDATE event."""

        allowed = {"name", "email", "preferred_currency_id"}
        unknown = sorted(set(preferences) - allowed)
        if unknown:
            raise ValidationError(
                [(key, "is not an editable preference") for key in unknown], context="USER update"
            )

        def write(session: Session) -> User:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            before = validate_event_payload(
                EntityType.USER,
                {"name": user.name, "email": user.email, "preferredCurrencyId": user.preferred_currency_id},
            )
            after = validate_event_payload(EntityType.USER, {**before.as_json(), **_aliased(preferences)})
            user.name = after.name  # type: ignore[attr-defined]
            user.email = after.email  # type: ignore[attr-defined]
            user.preferred_currency_id = after.preferred_currency_id  # type: ignore[attr-defined]
            user.updated_at = self.clock()
            session.add(user)
            session.flush()
            self.event_store.append(
                session=session,
                user_id=user_id,
                entity_id=user_id,
                action_type=ActionType.UPDATE,
                entity_type=EntityType.USER,
                before_value=before,
                after_value=after,
                timestamp=occurred_at,
            )
            return user

        return self._transact(write, user_id=user_id, kind=EntityType.USER, action=ActionType.UPDATE)

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def load_read_model(self, user_id: int) -> FinancialState:
        """Build a state from the entity tables, for consistency audits."""

        with self.session_factory() as session:
            assets = session.exec(select(Asset).where(Asset.user_id == user_id)).all()
            liabilities = session.exec(select(Liability).where(Liability.user_id == user_id)).all()
            incomes = session.exec(select(IncomeLine).where(IncomeLine.user_id == user_id)).all()
            expenses = session.exec(select(Expense).where(Expense.user_id == user_id)).all()
            cash = session.exec(select(CashSavings).where(CashSavings.user_id == user_id)).first()
            user = session.get(User, user_id)

            return FinancialState(
                assets={a.id: AssetRecord(a.id, a.name, _cents(a.value)) for a in assets},
                liabilities={d.id: LiabilityRecord(d.id, d.name, _cents(d.value)) for d in liabilities},
                incomes={
                    i.id: IncomeRecord(
                        i.id, i.name, _cents(i.amount), i.type, resolve_quadrant(i.type, i.quadrant)
                    )
                    for i in incomes
                },
                expenses={e.id: ExpenseRecord(e.id, e.name, _cents(e.amount)) for e in expenses},
                cash_savings=_cents(cash.amount) if cash else _cents(0),
                cash_savings_id=cash.id if cash else None,
                currency=user.preferred_currency_id if user else None,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _table(self, kind: EntityType) -> tuple[type[SQLModel], tuple[str, ...]]:
        try:
            return ENTITY_TABLES[kind]
        except KeyError:
            raise ValueError(f"{kind.value} is not managed through the generic entity API") from None

    def _row_payload(self, kind: EntityType, row: SQLModel, columns: tuple[str, ...]) -> EventPayload:
        values = {column: getattr(row, column) for column in columns}
        return validate_event_payload(kind, {k: v for k, v in values.items() if v is not None})

    @staticmethod
    def _assign(row: SQLModel, payload: EventPayload, columns: tuple[str, ...]) -> None:
        for column in columns:
            setattr(row, column, getattr(payload, column))

    @staticmethod
    def _owned(
        session: Session, model: type[SQLModel], *, user_id: int, entity_id: int, kind: EntityType
    ) -> Any:
        row = session.exec(
            select(model).where(model.id == entity_id, model.user_id == user_id)  # type: ignore[attr-defined]
        ).first()
        if row is None:
            raise NotFoundError(f"{kind.value} {entity_id} not found for user {user_id}")
        return row

    def _transact(
        self,
        work: Callable[[Session], T],
        *,
        user_id: Optional[int],
        kind: EntityType,
        action: ActionType,
    ) -> T:
        try:
            with self.session_factory() as session:
                return work(session)
        except SQLAlchemyError as exc:
            logger.error(
                "Entity write rolled back",
                extra={"user_id": user_id, "entity_type": kind.value, "action_type": action.value},
            )
            raise PersistenceError(f"Could not {action.value.lower()} {kind.value}") from exc


def _aliased(preferences: Mapping[str, Any]) -> dict[str, Any]:
    return {
        ("preferredCurrencyId" if key == "preferred_currency_id" else key): value
        for key, value in preferences.items()
    }
