"""Immutable value types exchanged between the engine and its collaborators.

Money is ``Decimal`` and days are ``datetime.date`` throughout. Sources build
these from whatever they read; the engine never mutates them.
"""

import datetime
import hashlib
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EventType(str, Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"
    CREDIT_PAYMENT = "credit-payment"
    PURCHASE_ORDER = "purchase-order"


class SettlementStatus(str, Enum):
    CONFIRMED = "confirmed"
    ESTIMATED = "estimated"
    FORECASTED = "forecasted"


class IncomeStatus(str, Enum):
    RECEIVED = "received"
    PENDING = "pending"
    OVERDUE = "overdue"


class RecurringFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    TWO_MONTHS = "2-months"
    THREE_MONTHS = "3-months"
    WEEKDAYS = "weekdays"


class RecurringType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class CashFlowEvent:
    """A dated movement of money.

    ``amount`` and ``date`` are optional only so that malformed records coming
    from a source can still be represented; the aggregator skips and counts
    them instead of failing the projection.
    """

    id: str
    type: EventType
    amount: Optional[Decimal]
    date: Optional[datetime.date]
    description: str = ""
    vendor: Optional[str] = None
    credit_card_id: Optional[str] = None
    source: Optional[str] = None
    balance_impact_date: Optional[datetime.date] = None

    @property
    def impact_date(self) -> Optional[datetime.date]:
        """Day the event actually moves the balance."""
        return self.balance_impact_date or self.date

    @property
    def is_inflow(self) -> bool:
        return self.type == EventType.INFLOW

    @property
    def is_credit_payment(self) -> bool:
        return self.type == EventType.CREDIT_PAYMENT

    @property
    def is_card_draw(self) -> bool:
        return bool(self.credit_card_id) and not self.is_credit_payment


@dataclass(frozen=True)
class IncomeItem:
    id: str
    amount: Decimal
    payment_date: datetime.date
    status: IncomeStatus
    description: str = ""
    source: Optional[str] = None


@dataclass(frozen=True)
class ScheduledPayment:
    date: datetime.date
    amount: Decimal


@dataclass(frozen=True)
class Vendor:
    id: str
    name: str
    total_owed: Decimal
    next_payment_date: Optional[datetime.date]
    next_payment_amount: Decimal
    status: str = "unpaid"
    po_name: Optional[str] = None
    # when present, replaces next_payment_date/next_payment_amount
    payment_schedule: Tuple[ScheduledPayment, ...] = ()


@dataclass(frozen=True)
class RecurringTransaction:
    """A repeating income or expense, expanded into dated events on demand.

    Occurrences fall on ``start_date`` and every frequency step after it, up to
    ``end_date`` inclusive when one is set.
    """

    id: str
    name: str
    amount: Decimal
    frequency: RecurringFrequency
    start_date: datetime.date
    type: RecurringType
    end_date: Optional[datetime.date] = None
    is_active: bool = True


@dataclass(frozen=True)
class SettlementRecord:
    """A marketplace settlement period and its payout.

    ``raw`` holds the marketplace metadata as received (period bounds,
    beginning balance, processing status).
    """

    id: str
    account_id: str
    status: SettlementStatus
    payout_date: Optional[datetime.date]
    total_amount: Decimal
    currency: str = "USD"
    raw: Dict[str, Any] = field(default_factory=dict, hash=False, compare=True)
    payout_frequency: Optional[str] = None


@dataclass(frozen=True)
class DailyTotals:
    date: datetime.date
    inflow: Decimal
    outflow: Decimal
    event_count: int = 0

    @property
    def change(self) -> Decimal:
        return self.inflow - self.outflow


@dataclass(frozen=True)
class DailyProjectionPoint:
    date: datetime.date
    running_balance: Decimal
    daily_inflow: Decimal
    daily_outflow: Decimal
    available_credit: Decimal
    is_today: bool


@dataclass(frozen=True)
class BuyingOpportunity:
    """A local-minimum day and the amount safely spendable ahead of it."""

    date: datetime.date
    balance: Decimal
    available_date: datetime.date


@dataclass(frozen=True)
class Snapshot:
    """Immutable input to one engine computation."""

    today: datetime.date
    starting_balance: Decimal
    total_available_credit: Decimal
    events: Tuple[CashFlowEvent, ...] = ()
    settlements: Tuple[SettlementRecord, ...] = ()

    @property
    def fingerprint(self) -> str:
        """Stable digest of the snapshot content, used as the memo key."""
        digest = hashlib.sha256()
        digest.update(repr((self.today, self.starting_balance, self.total_available_credit)).encode())
        for event in self.events:
            digest.update(repr(event).encode())
        for settlement in self.settlements:
            # raw metadata dicts keep insertion order; sort for a stable digest
            digest.update(repr(settlement.id).encode())
            digest.update(
                repr(
                    (
                        settlement.status,
                        settlement.payout_date,
                        settlement.total_amount,
                        settlement.payout_frequency,
                        sorted(settlement.raw.items(), key=lambda kv: kv[0]),
                    )
                ).encode()
            )
        return digest.hexdigest()
