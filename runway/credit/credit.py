"""Aggregate available credit across connected cards, projected per day.

Card draws (events carrying a credit card id) reduce the available credit from
their recorded date on; credit-card payments restore it. The result is floored
at zero.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from runway.events.events import event_problem
from runway.events.models import CashFlowEvent
from runway.logging_config import get_logger
from runway.metrics import credit_projection_duration_seconds, measure_duration

logger = get_logger(__name__)

ZERO = Decimal("0")


def _credit_day(event: CashFlowEvent) -> Optional[date]:
    return event.date or event.balance_impact_date


def _credit_delta(event: CashFlowEvent) -> Decimal:
    """Signed effect on available credit, zero for events unrelated to cards."""
    if event.is_credit_payment:
        return event.amount
    if event.is_card_draw:
        return -event.amount
    return ZERO


def available_credit_on(
    total_available_credit: Decimal,
    events: Iterable[CashFlowEvent],
    day: date,
) -> Decimal:
    """Available credit on a single day, scanning every event."""
    credit = Decimal(total_available_credit)
    for event in events:
        if event_problem(event):
            continue
        event_day = _credit_day(event)
        if event_day is not None and event_day <= day:
            credit += _credit_delta(event)
    return max(ZERO, credit)


@measure_duration(credit_projection_duration_seconds)
def project_available_credit(
    total_available_credit: Decimal,
    events: Iterable[CashFlowEvent],
    days: Sequence[date],
) -> List[Tuple[date, Decimal]]:
    """Available credit for each day using running prefix sums.

    Equivalent to calling ``available_credit_on`` for every day, but in
    O(days + events). Draws and payments dated before the first day count
    from day 0; those after the last day are ignored.

    Args:
        total_available_credit (Decimal): Unused credit across all cards now.
        events (Iterable[CashFlowEvent]): Snapshot events; non-card events are ignored.
        days (Sequence[date]): Ascending, contiguous days.

    Returns:
        List[Tuple[date, Decimal]]: (day, available credit) pairs.
    """
    if not days:
        return []

    first, last = days[0], days[-1]
    deltas: Dict[date, Decimal] = {}
    for event in events:
        if event_problem(event):
            continue
        delta = _credit_delta(event)
        if delta == 0:
            continue
        event_day = _credit_day(event)
        if event_day > last:
            continue
        key = max(event_day, first)
        deltas[key] = deltas.get(key, ZERO) + delta

    series = []
    running = Decimal(total_available_credit)
    for day in days:
        running += deltas.get(day, ZERO)
        series.append((day, max(ZERO, running)))
    return series
