"""Running balance projection.

A single forward scan over daily changes starting today. Amounts stay in full
Decimal precision; rounding is left to the presentation layer.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from runway.errors import MissingStartingBalance
from runway.metrics import balance_projection_duration_seconds, measure_duration

BalancePoint = Tuple[date, Decimal]


@measure_duration(balance_projection_duration_seconds)
def project_balances(
    starting_balance: Optional[Decimal],
    days: Sequence[date],
    changes: Sequence[Decimal],
    exclude_today: bool = False,
) -> List[BalancePoint]:
    """Project the running balance for each day.

    Day 0 is today: its balance is the starting balance plus today's net
    change, unless ``exclude_today`` is set because the bank balance already
    reflects today's activity. Every later day adds its own net change.

    Args:
        starting_balance (Optional[Decimal]): Today's real balance.
        days (Sequence[date]): Ascending days starting today.
        changes (Sequence[Decimal]): Net change for each day.
        exclude_today (bool): Do not apply day 0's change.

    Returns:
        List[BalancePoint]: (day, running balance) pairs.

    Raises:
        MissingStartingBalance: If no starting balance was supplied.
        ValueError: If days and changes differ in length.
    """
    if starting_balance is None:
        raise MissingStartingBalance()
    if len(days) != len(changes):
        raise ValueError(f"Got {len(days)} days but {len(changes)} daily changes")

    series: List[BalancePoint] = []
    running = Decimal(starting_balance)
    for i, (day, change) in enumerate(zip(days, changes)):
        if i == 0:
            running = Decimal(starting_balance) + (Decimal("0") if exclude_today else change)
        else:
            running = running + change
        series.append((day, running))
    return series


def reserve_floor(days: Sequence[date], reserve_amount: Decimal) -> List[BalancePoint]:
    """Flat minimum-balance line drawn next to the projection; display only."""
    return [(day, Decimal(reserve_amount)) for day in days]


@dataclass(frozen=True)
class BalanceSummary:
    lowest_balance: Decimal
    lowest_balance_date: date
    first_negative_date: Optional[date]


def balance_summary(series: Sequence[BalancePoint]) -> Optional[BalanceSummary]:
    """Lowest projected balance (earliest day on ties) and first negative day."""
    if not series:
        return None
    lowest_date, lowest = series[0]
    first_negative = None
    for day, balance in series:
        if balance < lowest:
            lowest_date, lowest = day, balance
        if first_negative is None and balance < 0:
            first_negative = day
    return BalanceSummary(
        lowest_balance=lowest,
        lowest_balance_date=lowest_date,
        first_negative_date=first_negative,
    )
