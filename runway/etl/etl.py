"""CSV snapshot ingestion: event and settlement exports -> engine types -> database."""

from typing import List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from runway.db.models import CashFlowEventRow, SettlementRow
from runway.db.session import get_db_session
from runway.dates.dates import to_optional_date
from runway.events.events import to_amount
from runway.events.models import CashFlowEvent, EventType, SettlementRecord, SettlementStatus
from runway.logging_config import get_logger
from runway.metrics import etl_duration_seconds, measure_duration, skipped_events_total

logger = get_logger(__name__)


def _read_csv(path: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=True)
    # Standardize column names
    df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")
    return df


def _text(row, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def load_events_csv(path: str) -> Tuple[List[CashFlowEvent], int]:
    """Read cash flow events from a CSV export.

    Expected columns: id, type, amount, date; optional description, vendor,
    credit_card_id, source, balance_impact_date. Rows with a missing or
    invalid amount, date or type are skipped and counted.

    Args:
        path (str): CSV file path.

    Returns:
        Tuple[List[CashFlowEvent], int]: (events, skipped_count).
    """
    df = _read_csv(path)
    if df.empty:
        logger.warning(f"Empty CSV file: {path}")
        return [], 0

    missing_cols = [col for col in ("type", "amount", "date") if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns in {path}: {missing_cols}")

    events: List[CashFlowEvent] = []
    skipped = 0
    for index, row in df.iterrows():
        amount = to_amount(_text(row, "amount"))
        recorded = to_optional_date(_text(row, "date"))
        impact = to_optional_date(_text(row, "balance_impact_date"))
        try:
            event_type = EventType(_text(row, "type"))
        except ValueError:
            event_type = None

        if amount is None or amount < 0 or (recorded is None and impact is None) or event_type is None:
            logger.warning(f"Skipping malformed event row {index} in {path}")
            skipped_events_total.labels(reason="malformed_row").inc()
            skipped += 1
            continue

        events.append(
            CashFlowEvent(
                id=_text(row, "id") or f"row_{index}",
                type=event_type,
                amount=amount,
                date=recorded or impact,
                description=_text(row, "description") or "",
                vendor=_text(row, "vendor"),
                credit_card_id=_text(row, "credit_card_id"),
                source=_text(row, "source"),
                balance_impact_date=impact,
            )
        )

    logger.info(f"Loaded {len(events)} events from {path}, skipped {skipped}")
    return events, skipped


def load_settlements_csv(path: str) -> Tuple[List[SettlementRecord], int]:
    """Read settlement records from a CSV export.

    Expected columns: id, account_id, status, payout_date, total_amount;
    optional currency, period_start, period_end, payout_frequency.

    Returns:
        Tuple[List[SettlementRecord], int]: (records, skipped_count).
    """
    df = _read_csv(path)
    if df.empty:
        logger.warning(f"Empty CSV file: {path}")
        return [], 0

    records: List[SettlementRecord] = []
    skipped = 0
    for index, row in df.iterrows():
        settlement_id = _text(row, "id")
        amount = to_amount(_text(row, "total_amount"))
        try:
            status = SettlementStatus(_text(row, "status"))
        except ValueError:
            status = None
        if not settlement_id or amount is None or status is None:
            logger.warning(f"Skipping malformed settlement row {index} in {path}")
            skipped += 1
            continue

        raw = {}
        start = to_optional_date(_text(row, "period_start"))
        end = to_optional_date(_text(row, "period_end"))
        if start is not None:
            raw["periodStart"] = start.isoformat()
        if end is not None:
            raw["periodEnd"] = end.isoformat()

        records.append(
            SettlementRecord(
                id=settlement_id,
                account_id=_text(row, "account_id") or "",
                status=status,
                payout_date=to_optional_date(_text(row, "payout_date")),
                total_amount=amount,
                currency=_text(row, "currency") or "USD",
                raw=raw,
                payout_frequency=_text(row, "payout_frequency"),
            )
        )

    logger.info(f"Loaded {len(records)} settlements from {path}, skipped {skipped}")
    return records, skipped


def save_events(db: Session, events: List[CashFlowEvent]) -> int:
    """Insert or update event rows by id. Returns the number of rows written."""
    for event in events:
        db.merge(
            CashFlowEventRow(
                id=event.id,
                type=EventType(event.type).value,
                amount=event.amount,
                description=event.description,
                vendor=event.vendor,
                credit_card_id=event.credit_card_id,
                source=event.source,
                date=event.date,
                balance_impact_date=event.balance_impact_date,
            )
        )
    return len(events)


def save_settlements(db: Session, records: List[SettlementRecord]) -> int:
    """Insert or update settlement rows by id. Returns the number of rows written."""
    for record in records:
        db.merge(
            SettlementRow(
                id=record.id,
                account_id=record.account_id,
                status=SettlementStatus(record.status).value,
                payout_date=record.payout_date,
                total_amount=record.total_amount,
                currency=record.currency,
                raw_settlement_data=dict(record.raw),
                payout_frequency=record.payout_frequency,
            )
        )
    return len(records)


@measure_duration(etl_duration_seconds)
def run_etl(events_csv: Optional[str], settlements_csv: Optional[str] = None, session_factory=None) -> Tuple[int, int]:
    """Load event and settlement CSVs into the database.

    Args:
        events_csv (Optional[str]): Path to the events CSV.
        settlements_csv (Optional[str]): Path to the settlements CSV.
        session_factory: Optional sessionmaker, defaults to the configured database.

    Returns:
        Tuple[int, int]: (events_written, settlements_written).
    """
    if not events_csv and not settlements_csv:
        logger.warning("No input files provided for ETL")
        return 0, 0

    with get_db_session(session_factory) as db:
        try:
            events_written = 0
            if events_csv:
                events, _ = load_events_csv(events_csv)
                events_written = save_events(db, events)

            settlements_written = 0
            if settlements_csv:
                records, _ = load_settlements_csv(settlements_csv)
                settlements_written = save_settlements(db, records)

            logger.info(
                f"ETL completed: events written: {events_written}, settlements written: {settlements_written}"
            )
            return events_written, settlements_written
        except Exception as e:
            logger.exception(f"ETL pipeline failed: {e}")
            raise
