"""Event normalization: validation of single events and conversion of income
items, vendor purchase orders and recurring transactions into CashFlowEvents."""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from runway.logging_config import get_logger
from runway.events.models import (
    CashFlowEvent,
    EventType,
    IncomeItem,
    IncomeStatus,
    RecurringFrequency,
    RecurringTransaction,
    RecurringType,
    Vendor,
)

logger = get_logger(__name__)

PAID_STATUS = "paid"

FREQUENCY_STEPS = {
    RecurringFrequency.DAILY: relativedelta(days=1),
    RecurringFrequency.WEEKLY: relativedelta(weeks=1),
    RecurringFrequency.BI_WEEKLY: relativedelta(weeks=2),
    RecurringFrequency.MONTHLY: relativedelta(months=1),
    RecurringFrequency.TWO_MONTHS: relativedelta(months=2),
    RecurringFrequency.THREE_MONTHS: relativedelta(months=3),
    RecurringFrequency.WEEKDAYS: relativedelta(days=1),
}


def to_amount(value) -> Optional[Decimal]:
    """Convert a numeric value to Decimal, returning None when it is missing or invalid."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        # go through str() so 0.1 stays 0.1
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def event_problem(event: CashFlowEvent) -> Optional[str]:
    """Return why an event cannot be projected, or None if it is usable.

    Args:
        event (CashFlowEvent): Event to check.

    Returns:
        Optional[str]: One of 'missing_amount', 'negative_amount',
        'missing_date', or None.
    """
    if event.amount is None:
        return "missing_amount"
    if event.amount < 0:
        return "negative_amount"
    if event.impact_date is None:
        return "missing_date"
    return None


def income_events(items: Iterable[IncomeItem]) -> List[CashFlowEvent]:
    """Expected income that has not been received yet, as inflow events."""
    events = []
    for item in items:
        if item.status == IncomeStatus.RECEIVED:
            continue
        events.append(
            CashFlowEvent(
                id=f"income_{item.id}",
                type=EventType.INFLOW,
                amount=item.amount,
                date=item.payment_date,
                description=item.description,
                source=item.source or "income",
            )
        )
    return events


def vendor_events(vendors: Iterable[Vendor]) -> List[CashFlowEvent]:
    """Upcoming payments of every unpaid vendor with money owed, as purchase-order events.

    A vendor's payment schedule, when it has one, takes the place of its single
    next payment.
    """
    events = []
    for vendor in vendors:
        if vendor.status == PAID_STATUS or vendor.total_owed <= 0:
            continue
        description = vendor.po_name or f"Payment to {vendor.name}"
        if vendor.payment_schedule:
            for index, payment in enumerate(vendor.payment_schedule):
                events.append(
                    CashFlowEvent(
                        id=f"vendor_{vendor.id}_{payment.date.isoformat()}_{index}",
                        type=EventType.PURCHASE_ORDER,
                        amount=payment.amount,
                        date=payment.date,
                        description=description,
                        vendor=vendor.name,
                        source="vendor-schedule",
                    )
                )
            continue
        if vendor.next_payment_date is None:
            logger.warning(f"Vendor '{vendor.name}' owes {vendor.total_owed} but has no next payment date")
            continue
        events.append(
            CashFlowEvent(
                id=f"vendor_{vendor.id}_{vendor.next_payment_date.isoformat()}",
                type=EventType.PURCHASE_ORDER,
                amount=vendor.next_payment_amount,
                date=vendor.next_payment_date,
                description=description,
                vendor=vendor.name,
                source="vendor",
            )
        )
    return events


def occurrence_dates(item: RecurringTransaction, start: date, end: date) -> List[date]:
    """Days in [start, end] on which a recurring transaction falls.

    Steps are counted from ``start_date`` rather than chained, so a monthly
    item starting on the 31st lands on the last day of shorter months and
    returns to the 31st afterwards. Weekday items skip Saturdays and Sundays.

    Raises:
        ValueError: If the frequency is unknown.
    """
    if not item.is_active:
        return []
    frequency = RecurringFrequency(item.frequency)
    step = FREQUENCY_STEPS[frequency]
    last = min(end, item.end_date) if item.end_date is not None else end

    days = []
    k = 0
    while True:
        day = item.start_date + step * k
        if day > last:
            break
        if day >= start and not (frequency == RecurringFrequency.WEEKDAYS and day.weekday() >= 5):
            days.append(day)
        k += 1
    return days


def recurring_events(
    items: Iterable[RecurringTransaction], start: date, end: date
) -> List[CashFlowEvent]:
    """Expand active recurring transactions into one event per occurrence in [start, end].

    Items with an unknown frequency are skipped with a warning.
    """
    events = []
    for item in items:
        try:
            days = occurrence_dates(item, start, end)
        except ValueError:
            logger.warning(f"Skipping recurring transaction {item.id}: unknown frequency '{item.frequency}'")
            continue
        event_type = EventType.INFLOW if item.type == RecurringType.INCOME else EventType.OUTFLOW
        for day in days:
            events.append(
                CashFlowEvent(
                    id=f"recurring_{item.id}_{day.isoformat()}",
                    type=event_type,
                    amount=item.amount,
                    date=day,
                    description=item.name,
                    source="recurring",
                )
            )
    return events
