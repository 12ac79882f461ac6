"""Buying opportunities: local minima of the projected balance and the queries
answered against them.

A buying opportunity is a low point in the balance timeline. Spending up to the
balance at that low point never takes the account negative, and it becomes
safe to spend from the opportunity's ``available_date`` on.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from runway.balance.balance import BalancePoint, balance_summary
from runway.events.models import BuyingOpportunity
from runway.logging_config import get_logger
from runway.metrics import (
    measure_duration,
    opportunity_extraction_duration_seconds,
    opportunity_search_duration_seconds,
)

logger = get_logger(__name__)

ZERO = Decimal("0")
# safe-spending entry and first opportunity are treated as the same amount within a cent
CENT = Decimal("0.01")


@dataclass(frozen=True)
class DateSearchResult:
    opportunity: BuyingOpportunity
    can_purchase: bool


@dataclass(frozen=True)
class SafeSpending:
    safe_spending_limit: Decimal
    reserve_amount: Decimal
    lowest_balance: Decimal
    lowest_balance_date: date
    will_go_negative: bool
    negative_date: Optional[date]
    available_date: date
    opportunities: List[BuyingOpportunity]


def _local_minima(balances: Sequence[Decimal]) -> List[int]:
    """Indices of local minima, keeping only the first day of a flat run."""
    n = len(balances)
    minima: List[int] = []
    previous_was_min = False
    for i in range(n):
        left_ok = i == 0 or balances[i] <= balances[i - 1]
        right_ok = i == n - 1 or balances[i] <= balances[i + 1]
        is_min = left_ok and right_ok
        # a minimum next to another minimum is necessarily equal to it
        if is_min and not previous_was_min:
            minima.append(i)
        previous_was_min = is_min
    return minima


def _earliest_safe_index(balances: Sequence[Decimal], i: int) -> int:
    """Earliest j <= i with balances[j..i] all >= balances[i]."""
    floor = balances[i]
    j = i
    while j > 0 and balances[j - 1] >= floor:
        j -= 1
    return j


@measure_duration(opportunity_extraction_duration_seconds)
def extract_opportunities(
    series: Sequence[BalancePoint],
    reserve_amount: Decimal = ZERO,
    horizon_end: Optional[date] = None,
) -> List[BuyingOpportunity]:
    """Find buying opportunities in a day-ordered balance series.

    A day is a local minimum when its balance is not above either neighbor;
    the first and last days only compare against the neighbor they have. Of a
    run of equal adjacent minima only the earliest day is kept, so the result
    is strictly increasing in date.

    Args:
        series (Sequence[BalancePoint]): (day, running balance), ascending.
        reserve_amount (Decimal): Minimum balance to keep; subtracted from the
            spendable amount, never from the series.
        horizon_end (Optional[date]): Ignore days after this one.

    Returns:
        List[BuyingOpportunity]: One entry per retained local minimum.
    """
    if horizon_end is not None:
        series = [point for point in series if point[0] <= horizon_end]
    if not series:
        return []

    days = [day for day, _ in series]
    balances = [balance for _, balance in series]
    opportunities = []
    for i in _local_minima(balances):
        j = _earliest_safe_index(balances, i)
        opportunities.append(
            BuyingOpportunity(
                date=days[i],
                balance=balances[i] - reserve_amount,
                available_date=days[j],
            )
        )
    logger.debug(f"Extracted {len(opportunities)} opportunities from {len(series)} days")
    return opportunities


@measure_duration(opportunity_search_duration_seconds)
def search_by_amount(
    opportunities: Iterable[BuyingOpportunity], amount: Decimal
) -> Optional[BuyingOpportunity]:
    """Earliest opportunity that can cover ``amount``, or None."""
    for opportunity in opportunities:
        if opportunity.balance >= amount:
            return opportunity
    return None


@measure_duration(opportunity_search_duration_seconds)
def search_by_date(
    opportunities: Iterable[BuyingOpportunity], query_date: date
) -> Optional[DateSearchResult]:
    """First opportunity whose [available_date, date] window contains ``query_date``, or None."""
    for opportunity in opportunities:
        if opportunity.available_date <= query_date <= opportunity.date:
            return DateSearchResult(
                opportunity=opportunity,
                can_purchase=query_date >= opportunity.available_date,
            )
    return None


def drop_superseded(opportunities: Sequence[BuyingOpportunity]) -> List[BuyingOpportunity]:
    """Remove opportunities that promise more than a later, lower opportunity allows."""
    kept = []
    later_min: Optional[Decimal] = None
    for opportunity in reversed(opportunities):
        if later_min is None or opportunity.balance <= later_min:
            kept.append(opportunity)
        later_min = opportunity.balance if later_min is None else min(later_min, opportunity.balance)
    kept.reverse()
    return kept


def apply_purchases(
    opportunities: Sequence[BuyingOpportunity],
    purchases: Iterable[Tuple[date, Decimal]],
) -> List[BuyingOpportunity]:
    """Re-rate opportunities as if the given purchases were made.

    Each purchase reduces every opportunity dated on or after it. Opportunities
    left with nothing to spend are dropped, as are those exceeding a later one.

    Args:
        opportunities (Sequence[BuyingOpportunity]): Extracted opportunities.
        purchases (Iterable[Tuple[date, Decimal]]): Hypothetical (day, amount) spends.

    Returns:
        List[BuyingOpportunity]: Adjusted opportunities.
    """
    by_date: Dict[date, Decimal] = {}
    for day, amount in purchases:
        by_date[day] = by_date.get(day, ZERO) + Decimal(amount)
    if not by_date:
        return list(opportunities)

    adjusted = []
    for opportunity in opportunities:
        spent = sum((amount for day, amount in by_date.items() if day <= opportunity.date), ZERO)
        balance = opportunity.balance - spent
        if balance > 0:
            adjusted.append(
                BuyingOpportunity(
                    date=opportunity.date,
                    balance=balance,
                    available_date=opportunity.available_date,
                )
            )
    return drop_superseded(adjusted)


def safe_spending(
    series: Sequence[BalancePoint],
    today: date,
    reserve_amount: Decimal = ZERO,
    horizon_end: Optional[date] = None,
) -> Optional[SafeSpending]:
    """How much can be spent today without the projection dipping below the reserve.

    The list of opportunities starts with today's safe-spending amount
    followed by the future low points that do not exceed a later one. Returns
    None for an empty series.
    """
    summary = balance_summary(series)
    if summary is None:
        return None

    limit = summary.lowest_balance - reserve_amount
    negative_date = summary.first_negative_date
    if negative_date is None and reserve_amount > 0:
        negative_date = next((day for day, balance in series if balance < reserve_amount), None)

    future = [
        opportunity
        for opportunity in extract_opportunities(series, reserve_amount, horizon_end)
        if opportunity.date > today
    ]
    future = drop_superseded(future)
    today_entry = BuyingOpportunity(date=today, balance=limit, available_date=series[0][0])
    if future and abs(future[0].balance - limit) < CENT:
        opportunities = future
    else:
        opportunities = [today_entry] + future

    return SafeSpending(
        safe_spending_limit=limit,
        reserve_amount=reserve_amount,
        lowest_balance=summary.lowest_balance,
        lowest_balance_date=summary.lowest_balance_date,
        will_go_negative=negative_date is not None,
        negative_date=negative_date,
        available_date=series[0][0],
        opportunities=opportunities,
    )
