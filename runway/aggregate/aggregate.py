"""Daily aggregation: bucket events by the day they move the balance."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List

from runway.dates.dates import day_range
from runway.events.events import event_problem
from runway.events.models import CashFlowEvent, DailyTotals
from runway.logging_config import get_logger
from runway.metrics import aggregation_duration_seconds, measure_duration, skipped_events_total

logger = get_logger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class AggregationResult:
    days: List[DailyTotals]
    skipped: int = 0

    @property
    def changes(self) -> List[Decimal]:
        return [day.change for day in self.days]


@measure_duration(aggregation_duration_seconds)
def aggregate_daily(
    events: Iterable[CashFlowEvent],
    start: date,
    end: date,
    exclude_card_draws: bool = False,
) -> AggregationResult:
    """Sum inflows and outflows per calendar day over [start, end].

    Inflow events add to the day's inflow; every other type adds to the
    outflow. Events outside the range are ignored. Malformed events are skipped,
    logged and counted rather than failing the whole aggregation.

    Args:
        events (Iterable[CashFlowEvent]): Events to bucket.
        start (date): First day, inclusive.
        end (date): Last day, inclusive.
        exclude_card_draws (bool): Leave card purchases out of cash outflow,
            since they draw on the credit line instead.

    Returns:
        AggregationResult: One DailyTotals per day plus the skipped count.

    Raises:
        InvalidDateRange: If end is before start.
    """
    days = day_range(start, end)
    inflow: Dict[date, Decimal] = {}
    outflow: Dict[date, Decimal] = {}
    counts: Dict[date, int] = {}
    skipped = 0

    for event in events:
        problem = event_problem(event)
        if problem:
            logger.warning(f"Skipping event {event.id}: {problem}")
            skipped_events_total.labels(reason=problem).inc()
            skipped += 1
            continue

        day = event.impact_date
        if day < start or day > end:
            continue
        if exclude_card_draws and event.is_card_draw:
            continue

        counts[day] = counts.get(day, 0) + 1
        if event.is_inflow:
            inflow[day] = inflow.get(day, ZERO) + event.amount
        else:
            outflow[day] = outflow.get(day, ZERO) + event.amount

    totals = [
        DailyTotals(
            date=day,
            inflow=inflow.get(day, ZERO),
            outflow=outflow.get(day, ZERO),
            event_count=counts.get(day, 0),
        )
        for day in days
    ]
    if skipped:
        logger.info(f"Aggregated {len(totals)} days, skipped {skipped} malformed events")
    return AggregationResult(days=totals, skipped=skipped)
