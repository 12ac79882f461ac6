"""Snapshot sources: where the engine reads events, balances and settlements from.

The engine only depends on the ``SnapshotSource`` interface. ``StaticSource``
serves in-memory data (tests, CSV snapshots); ``DatabaseSource`` reads the
tables the sync collaborators maintain.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError

from runway.db.models import (
    BankAccount,
    CashFlowEventRow,
    CreditCard,
    IncomeRow,
    RecurringRow,
    SettlementRow,
    VendorRow,
)
from runway.db.session import get_db_session
from runway.errors import InvalidDateRange, SourceUnavailable
from runway.dates.dates import to_optional_date
from runway.events.events import (
    PAID_STATUS,
    income_events,
    recurring_events,
    to_amount,
    vendor_events,
)
from runway.events.models import (
    CashFlowEvent,
    EventType,
    IncomeItem,
    IncomeStatus,
    RecurringTransaction,
    RecurringType,
    ScheduledPayment,
    SettlementRecord,
    SettlementStatus,
    Vendor,
)
from runway.logging_config import get_logger

logger = get_logger(__name__)


def _in_range(event: CashFlowEvent, start: date, end: date) -> bool:
    # undated events are passed through so the aggregator can count them
    day = event.impact_date
    return day is None or start <= day <= end


def _event_order(event: CashFlowEvent):
    day = event.impact_date
    return (day is None, day or date.min, event.id)


class SnapshotSource:
    """Interface for the collaborators that feed the engine."""

    def get_events(self, start: date, end: date) -> List[CashFlowEvent]:
        """Events impacting the balance in [start, end], ordered by impact date."""
        raise NotImplementedError

    def get_starting_balance(self) -> Optional[Decimal]:
        """Today's real cash balance, or None when none is known."""
        raise NotImplementedError

    def get_total_available_credit(self) -> Decimal:
        raise NotImplementedError

    def get_settlement_records(self) -> List[SettlementRecord]:
        raise NotImplementedError


class StaticSource(SnapshotSource):
    """In-memory source over fixed data; recurring transactions are expanded per request."""

    def __init__(
        self,
        starting_balance: Optional[Decimal],
        events: Iterable[CashFlowEvent] = (),
        total_available_credit: Decimal = Decimal("0"),
        settlements: Iterable[SettlementRecord] = (),
        recurring: Iterable[RecurringTransaction] = (),
    ):
        self.starting_balance = starting_balance
        self.events = tuple(events)
        self.total_available_credit = Decimal(total_available_credit)
        self.settlements = tuple(settlements)
        self.recurring = tuple(recurring)

    def get_events(self, start: date, end: date) -> List[CashFlowEvent]:
        if end < start:
            raise InvalidDateRange(start, end)
        events = [e for e in self.events if _in_range(e, start, end)]
        events.extend(recurring_events(self.recurring, start, end))
        return sorted(events, key=_event_order)

    def get_starting_balance(self) -> Optional[Decimal]:
        return self.starting_balance

    def get_total_available_credit(self) -> Decimal:
        return self.total_available_credit

    def get_settlement_records(self) -> List[SettlementRecord]:
        return list(self.settlements)


def event_from_row(row: CashFlowEventRow) -> CashFlowEvent:
    return CashFlowEvent(
        id=str(row.id),
        type=EventType(row.type),
        amount=row.amount,
        date=row.date,
        description=row.description or "",
        vendor=row.vendor,
        credit_card_id=row.credit_card_id,
        source=row.source,
        balance_impact_date=row.balance_impact_date,
    )


def settlement_from_row(row: SettlementRow) -> SettlementRecord:
    return SettlementRecord(
        id=str(row.id),
        account_id=str(row.account_id),
        status=SettlementStatus(row.status),
        payout_date=row.payout_date,
        total_amount=row.total_amount,
        currency=row.currency or "USD",
        raw=dict(row.raw_settlement_data or {}),
        payout_frequency=row.payout_frequency,
    )


def payment_schedule_from_json(raw) -> Tuple[ScheduledPayment, ...]:
    """Parse a stored vendor schedule, dropping entries without a valid date or amount."""
    payments = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        day = to_optional_date(entry.get("date"))
        amount = to_amount(entry.get("amount"))
        if day is None or amount is None:
            logger.warning(f"Ignoring malformed vendor schedule entry: {entry}")
            continue
        payments.append(ScheduledPayment(date=day, amount=amount))
    return tuple(payments)


def recurring_from_row(row: RecurringRow) -> RecurringTransaction:
    return RecurringTransaction(
        id=str(row.id),
        name=row.name,
        amount=row.amount,
        frequency=row.frequency,
        start_date=row.start_date,
        type=RecurringType(row.type),
        end_date=row.end_date,
        is_active=bool(row.is_active),
    )


class DatabaseSource(SnapshotSource):
    """Source backed by the SQLAlchemy tables in ``runway.db.models``.

    Database errors are raised as SourceUnavailable so callers can tell an
    unreachable store from a valid but empty one.
    """

    def __init__(self, session_factory: Optional[Callable] = None, use_available_balance: bool = True):
        self.session_factory = session_factory
        self.use_available_balance = use_available_balance

    def _read(self, reader):
        try:
            with get_db_session(self.session_factory) as db:
                return reader(db)
        except SQLAlchemyError as e:
            logger.exception(f"Snapshot source read failed: {e}")
            raise SourceUnavailable(f"Database source unavailable: {e}") from e

    def get_events(self, start: date, end: date) -> List[CashFlowEvent]:
        if end < start:
            raise InvalidDateRange(start, end)

        def reader(db):
            impact = func.coalesce(CashFlowEventRow.balance_impact_date, CashFlowEventRow.date)
            rows = (
                db.query(CashFlowEventRow)
                .filter(
                    or_(
                        impact.between(start, end),
                        and_(
                            CashFlowEventRow.date.is_(None),
                            CashFlowEventRow.balance_impact_date.is_(None),
                        ),
                    )
                )
                .all()
            )
            events = [event_from_row(row) for row in rows]

            incomes = [
                IncomeItem(
                    id=str(row.id),
                    amount=row.amount,
                    payment_date=row.payment_date,
                    status=IncomeStatus(row.status),
                    description=row.description or "",
                    source=row.source,
                )
                for row in db.query(IncomeRow).filter(IncomeRow.payment_date.between(start, end))
            ]
            vendors = [
                Vendor(
                    id=str(row.id),
                    name=row.name,
                    total_owed=row.total_owed,
                    next_payment_date=row.next_payment_date,
                    next_payment_amount=row.next_payment_amount,
                    status=row.status,
                    po_name=row.po_name,
                    payment_schedule=payment_schedule_from_json(row.payment_schedule),
                )
                for row in db.query(VendorRow).filter(VendorRow.status != PAID_STATUS)
            ]
            recurring = [
                recurring_from_row(row)
                for row in db.query(RecurringRow).filter(
                    RecurringRow.is_active.is_(True),
                    RecurringRow.start_date <= end,
                    or_(RecurringRow.end_date.is_(None), RecurringRow.end_date >= start),
                )
            ]
            events.extend(income_events(incomes))
            # schedules are not filterable in SQL; keep only payments inside the range
            events.extend(e for e in vendor_events(vendors) if _in_range(e, start, end))
            events.extend(recurring_events(recurring, start, end))
            return events

        events = self._read(reader)
        logger.debug(f"Loaded {len(events)} events for {start}..{end}")
        return sorted(events, key=_event_order)

    def get_starting_balance(self) -> Optional[Decimal]:
        def reader(db):
            accounts = db.query(BankAccount).filter(BankAccount.is_active.is_(True)).all()
            if not accounts:
                return None
            return sum((self._usable_balance(account) for account in accounts), Decimal("0"))

        return self._read(reader)

    def _usable_balance(self, account: BankAccount) -> Decimal:
        if self.use_available_balance and account.available_balance is not None:
            return Decimal(account.available_balance)
        return Decimal(account.balance or 0)

    def get_total_available_credit(self) -> Decimal:
        def reader(db):
            cards = db.query(CreditCard).filter(CreditCard.is_active.is_(True)).all()
            return sum((Decimal(card.available_credit or 0) for card in cards), Decimal("0"))

        return self._read(reader)

    def get_settlement_records(self) -> List[SettlementRecord]:
        def reader(db):
            return [settlement_from_row(row) for row in db.query(SettlementRow).all()]

        return self._read(reader)
