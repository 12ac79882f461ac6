"""pandas views of engine results for presentation collaborators.

This is the only place amounts are rounded (to cents). The reserve floor is
added as its own column and never folded into the running balance.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

import pandas as pd

from runway.events.models import BuyingOpportunity, DailyProjectionPoint

CENTS = Decimal("0.01")

PROJECTION_COLUMNS = [
    "date",
    "running_balance",
    "daily_inflow",
    "daily_outflow",
    "available_credit",
    "is_today",
]


def round_money(value: Decimal) -> float:
    """Round half away from zero to cents and return a float for display."""
    return float(Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def projection_frame(
    points: Iterable[DailyProjectionPoint], reserve_amount: Optional[Decimal] = None
) -> pd.DataFrame:
    """Projection points as a DataFrame, one row per day.

    Args:
        points (Iterable[DailyProjectionPoint]): Engine projection.
        reserve_amount (Optional[Decimal]): Adds a constant 'reserve_floor' column.

    Returns:
        pd.DataFrame: Columns PROJECTION_COLUMNS (+ 'reserve_floor'), dates as
        datetime64, money as floats rounded to cents.
    """
    rows = [
        {
            "date": point.date,
            "running_balance": round_money(point.running_balance),
            "daily_inflow": round_money(point.daily_inflow),
            "daily_outflow": round_money(point.daily_outflow),
            "available_credit": round_money(point.available_credit),
            "is_today": point.is_today,
        }
        for point in points
    ]
    df = pd.DataFrame(rows, columns=PROJECTION_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    if reserve_amount is not None:
        df["reserve_floor"] = round_money(reserve_amount)
    return df


def opportunities_frame(opportunities: Iterable[BuyingOpportunity]) -> pd.DataFrame:
    """Buying opportunities as a DataFrame with columns date, balance, available_date."""
    df = pd.DataFrame(
        [
            {
                "date": opportunity.date,
                "balance": round_money(opportunity.balance),
                "available_date": opportunity.available_date,
            }
            for opportunity in opportunities
        ],
        columns=["date", "balance", "available_date"],
    )
    df["date"] = pd.to_datetime(df["date"])
    df["available_date"] = pd.to_datetime(df["available_date"])
    return df


def weekly_summary(points: Iterable[DailyProjectionPoint]) -> pd.DataFrame:
    """Inflow/outflow totals and closing balance per week (weeks start Monday)."""
    df = projection_frame(points)
    if df.empty:
        return pd.DataFrame(columns=["week_start", "inflow", "outflow", "closing_balance"])

    df["week_start"] = df["date"] - pd.to_timedelta(df["date"].dt.weekday, unit="D")
    weekly = (
        df.groupby("week_start")
        .agg(
            inflow=("daily_inflow", "sum"),
            outflow=("daily_outflow", "sum"),
            closing_balance=("running_balance", "last"),
        )
        .reset_index()
    )
    weekly["inflow"] = weekly["inflow"].round(2)
    weekly["outflow"] = weekly["outflow"].round(2)
    return weekly
