"""Projection engine facade.

Pulls an immutable snapshot from a ``SnapshotSource`` and runs the pipeline:
settlement payouts -> daily aggregation -> balance and credit projection ->
opportunity extraction -> search. Components are pure functions; the facade
only adds snapshot assembly and a memo, one entry per operation, keyed by the
snapshot fingerprint.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from runway.aggregate.aggregate import aggregate_daily
from runway.balance.balance import project_balances
from runway.config import Settings, get_settings
from runway.credit.credit import project_available_credit
from runway.dates.dates import horizon_end
from runway.errors import MissingStartingBalance
from runway.events.models import (
    BuyingOpportunity,
    DailyProjectionPoint,
    SettlementRecord,
    Snapshot,
)
from runway.logging_config import get_logger
from runway.metrics import projection_cache_hits_total
from runway.opportunity.opportunity import (
    DateSearchResult,
    SafeSpending,
    extract_opportunities,
    safe_spending,
    search_by_amount,
    search_by_date,
)
from runway.settlements.settlements import (
    Classification,
    classify,
    open_settlements,
    payout_events,
    payout_summary,
)
from runway.sources.sources import SnapshotSource

logger = get_logger(__name__)


def build_projection(
    snapshot: Snapshot,
    end: date,
    exclude_today: bool = False,
    settings: Optional[Settings] = None,
) -> List[DailyProjectionPoint]:
    """Project balance and available credit for every day from snapshot.today to end.

    Args:
        snapshot (Snapshot): Immutable input.
        end (date): Last projected day, inclusive.
        exclude_today (bool): Starting balance already includes today's events.
        settings (Optional[Settings]): Engine settings.

    Returns:
        List[DailyProjectionPoint]: One point per day.

    Raises:
        InvalidDateRange: If end is before snapshot.today.
        MissingStartingBalance: If the snapshot carries no starting balance.
    """
    settings = settings or Settings()
    payouts, skipped_payouts = payout_events(snapshot.settlements, snapshot.today, settings)
    events = list(snapshot.events) + payouts

    aggregation = aggregate_daily(events, snapshot.today, end)
    days = [totals.date for totals in aggregation.days]
    balances = project_balances(
        snapshot.starting_balance, days, aggregation.changes, exclude_today=exclude_today
    )
    credit = project_available_credit(snapshot.total_available_credit, events, days)

    points = [
        DailyProjectionPoint(
            date=totals.date,
            running_balance=balance,
            daily_inflow=totals.inflow,
            daily_outflow=totals.outflow,
            available_credit=available,
            is_today=totals.date == snapshot.today,
        )
        for totals, (_, balance), (_, available) in zip(aggregation.days, balances, credit)
    ]
    logger.info(
        f"Projected {len(points)} days from {snapshot.today} to {end}",
        extra={
            "context": {
                "events": len(events),
                "skipped_events": aggregation.skipped,
                "skipped_settlements": skipped_payouts,
            }
        },
    )
    return points


def balance_series(points: List[DailyProjectionPoint]) -> List[Tuple[date, Decimal]]:
    return [(point.date, point.running_balance) for point in points]


class CashFlowEngine:
    """Answers projection and buying-opportunity queries for one account.

    Every public call reads a fresh snapshot from the source. When the
    snapshot fingerprint and the arguments match the previous call of the same
    operation, the previous result is returned without recomputing.
    """

    def __init__(
        self,
        source: SnapshotSource,
        settings: Optional[Settings] = None,
        today_provider: Callable[[], date] = date.today,
    ):
        self.source = source
        self.settings = settings or get_settings()
        self.today_provider = today_provider
        self._memo: Dict[str, Tuple[Any, list]] = {}

    def snapshot(self, horizon_months: Optional[int] = None) -> Snapshot:
        """Read an immutable snapshot covering today through the horizon.

        Raises:
            MissingStartingBalance: If the source has no starting balance.
            SourceUnavailable: If the source cannot be read.
        """
        today = self.today_provider()
        end = self._horizon_end(today, horizon_months)
        starting_balance = self.source.get_starting_balance()
        if starting_balance is None:
            raise MissingStartingBalance("Snapshot source returned no starting balance")
        return Snapshot(
            today=today,
            starting_balance=Decimal(starting_balance),
            total_available_credit=Decimal(self.source.get_total_available_credit()),
            events=tuple(self.source.get_events(today, end)),
            settlements=tuple(self.source.get_settlement_records()),
        )

    def _horizon_end(self, today: date, horizon_months: Optional[int]) -> date:
        months = (
            horizon_months if horizon_months is not None else self.settings.projection_horizon_months
        )
        return horizon_end(today, months, self.settings.max_horizon_days)

    def _memoized(self, key, compute):
        # key[0] names the operation; each entry is replaced by a single
        # assignment, so concurrent callers at worst recompute
        operation = key[0]
        memo = self._memo.get(operation)
        if memo is not None and memo[0] == key:
            projection_cache_hits_total.labels(operation=operation).inc()
            return list(memo[1])
        result = compute()
        self._memo[operation] = (key, result)
        return list(result)

    def project(
        self, horizon_months: Optional[int] = None, exclude_today: bool = False
    ) -> List[DailyProjectionPoint]:
        """Daily projection points from today through the horizon."""
        snapshot = self.snapshot(horizon_months)
        end = self._horizon_end(snapshot.today, horizon_months)
        key = ("project", snapshot.fingerprint, end, exclude_today)
        return self._memoized(
            key, lambda: build_projection(snapshot, end, exclude_today, self.settings)
        )

    def extract_opportunities(self, exclude_today: bool = False) -> List[BuyingOpportunity]:
        """Buying opportunities over the opportunity horizon (three months by default)."""
        months = self.settings.opportunity_horizon_months
        snapshot = self.snapshot(months)
        end = self._horizon_end(snapshot.today, months)
        key = ("opportunities", snapshot.fingerprint, end, exclude_today)

        def compute():
            points = build_projection(snapshot, end, exclude_today, self.settings)
            return extract_opportunities(
                balance_series(points), self.settings.reserve_amount, horizon_end=end
            )

        return self._memoized(key, compute)

    def classify(self, settlement: SettlementRecord, today: Optional[date] = None) -> Classification:
        return classify(settlement, today or self.today_provider(), self.settings)

    def open_settlements(self) -> List[Tuple[SettlementRecord, Classification]]:
        return open_settlements(
            self.source.get_settlement_records(), self.today_provider(), self.settings
        )

    def payout_summary(self):
        return payout_summary(
            self.source.get_settlement_records(), self.today_provider(), self.settings
        )

    def search_by_amount(self, amount: Decimal) -> Optional[BuyingOpportunity]:
        """Earliest opportunity covering ``amount``; None when nothing in the horizon does."""
        return search_by_amount(self.extract_opportunities(), Decimal(amount))

    def search_by_date(self, query_date: date) -> Optional[DateSearchResult]:
        """Opportunity whose purchase window contains ``query_date``; None when none does."""
        return search_by_date(self.extract_opportunities(), query_date)

    def safe_spending(
        self, reserve_amount: Optional[Decimal] = None, exclude_today: bool = False
    ) -> Optional[SafeSpending]:
        """Safe-spending limit and warnings over the opportunity horizon."""
        reserve = self.settings.reserve_amount if reserve_amount is None else Decimal(reserve_amount)
        months = self.settings.opportunity_horizon_months
        points = self.project(months, exclude_today)
        end = self._horizon_end(self.today_provider(), months)
        return safe_spending(balance_series(points), self.today_provider(), reserve, horizon_end=end)
