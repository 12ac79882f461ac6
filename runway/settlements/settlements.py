"""Marketplace settlement classification.

Decides whether a settlement period is still open or already closed, projects
when its payout reaches the bank, and turns settlements into payout events the
aggregator can bucket.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from runway.config import Settings
from runway.dates.dates import to_optional_date
from runway.events.events import to_amount
from runway.events.models import CashFlowEvent, EventType, SettlementRecord, SettlementStatus
from runway.logging_config import get_logger
from runway.metrics import measure_duration, settlement_classification_duration_seconds

logger = get_logger(__name__)

# marketplace payloads name the period bounds differently depending on the API
PERIOD_START_KEYS = ("periodStart", "settlement_start_date", "FinancialEventGroupStart")
PERIOD_END_KEYS = ("periodEnd", "settlement_end_date", "FinancialEventGroupEnd")


class SettlementClass(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class Classification:
    status: SettlementClass
    arrival_date: Optional[date] = None
    projected_end: Optional[date] = None


def _raw_date(raw: Dict, keys: Tuple[str, ...]) -> Optional[date]:
    for key in keys:
        value = to_optional_date(raw.get(key))
        if value is not None:
            return value
    return None


def period_start(record: SettlementRecord) -> Optional[date]:
    return _raw_date(record.raw or {}, PERIOD_START_KEYS)


def period_end(record: SettlementRecord) -> Optional[date]:
    return _raw_date(record.raw or {}, PERIOD_END_KEYS)


def classify(
    record: SettlementRecord,
    today: date,
    settings: Optional[Settings] = None,
) -> Classification:
    """Classify a settlement as open or closed and compute its payout arrival.

    Confirmed settlements are closed; their funds arrive the day after the
    period ends, or on the payout date when the period end is unknown.
    Estimated settlements that have started, have no period end yet and whose
    payout is still ahead are open; their close is projected one settlement
    cycle after the period start. Anything else is unclassified.

    Args:
        record (SettlementRecord): Settlement to classify.
        today (date): Reference day.
        settings (Optional[Settings]): Supplies the cycle length per payout frequency.

    Returns:
        Classification: Status plus arrival (and projected end for open periods).
    """
    settings = settings or Settings()
    status = SettlementStatus(record.status)
    start = period_start(record)
    end = period_end(record)

    if status == SettlementStatus.CONFIRMED:
        arrival = end + timedelta(days=1) if end is not None else record.payout_date
        return Classification(SettlementClass.CLOSED, arrival_date=arrival)

    if (
        status == SettlementStatus.ESTIMATED
        and start is not None
        and end is None
        and record.payout_date is not None
        and record.payout_date >= today
        and today >= start
    ):
        cycle_days = settings.cycle_days_for(record.payout_frequency)
        projected_end = start + timedelta(days=cycle_days)
        return Classification(
            SettlementClass.OPEN, arrival_date=projected_end, projected_end=projected_end
        )

    return Classification(SettlementClass.UNCLASSIFIED)


def open_settlements(
    records: Iterable[SettlementRecord],
    today: date,
    settings: Optional[Settings] = None,
) -> List[Tuple[SettlementRecord, Classification]]:
    """Settlements still accumulating, paired with their classification."""
    result = []
    for record in records:
        classification = classify(record, today, settings)
        if classification.status == SettlementClass.OPEN:
            result.append((record, classification))
    return result


def payout_impact_date(
    record: SettlementRecord,
    today: date,
    settings: Optional[Settings] = None,
) -> Optional[date]:
    """Day a settlement payout moves the bank balance, or None if unknown."""
    classification = classify(record, today, settings)
    if classification.status != SettlementClass.UNCLASSIFIED:
        return classification.arrival_date
    end = period_end(record)
    if record.status == SettlementStatus.ESTIMATED and end is not None:
        return end + timedelta(days=1)
    return record.payout_date


@measure_duration(settlement_classification_duration_seconds)
def payout_events(
    records: Iterable[SettlementRecord],
    today: date,
    settings: Optional[Settings] = None,
) -> Tuple[List[CashFlowEvent], int]:
    """Convert settlements into payout events keyed on their impact date.

    Negative settlements (fees exceeding sales) become outflows of the absolute
    amount.

    Args:
        records (Iterable[SettlementRecord]): Settlements from the marketplace collaborator.
        today (date): Reference day for classification.
        settings (Optional[Settings]): Engine settings.

    Returns:
        Tuple[List[CashFlowEvent], int]: (events, skipped_count).
    """
    events: List[CashFlowEvent] = []
    skipped = 0
    for record in records:
        impact = payout_impact_date(record, today, settings)
        amount = to_amount(record.total_amount)
        if impact is None or amount is None:
            logger.warning(f"Skipping settlement {record.id}: no payout date or amount")
            skipped += 1
            continue

        event_type = EventType.INFLOW if amount >= 0 else EventType.OUTFLOW
        events.append(
            CashFlowEvent(
                id=f"settlement_{record.id}",
                type=event_type,
                amount=abs(amount),
                date=record.payout_date or impact,
                description=f"Marketplace payout {record.id}",
                source=f"{SettlementStatus(record.status).value}-payout",
                balance_impact_date=impact,
            )
        )
    return events, skipped


def payout_summary(
    records: Iterable[SettlementRecord],
    today: date,
    settings: Optional[Settings] = None,
) -> Dict[str, Decimal]:
    """Totals of confirmed, open (estimated) and upcoming forecasted payouts.

    Returns:
        Dict[str, Decimal]: Keys 'confirmed', 'estimated', 'upcoming'.
    """
    totals = {"confirmed": Decimal("0"), "estimated": Decimal("0"), "upcoming": Decimal("0")}
    for record in records:
        status = SettlementStatus(record.status)
        amount = to_amount(record.total_amount) or Decimal("0")
        if status == SettlementStatus.CONFIRMED:
            totals["confirmed"] += amount
        elif status == SettlementStatus.ESTIMATED:
            if classify(record, today, settings).status == SettlementClass.OPEN:
                totals["estimated"] += amount
        elif record.payout_date is not None and record.payout_date >= today:
            totals["upcoming"] += amount
    return totals
