"""Scheduler using APScheduler to refresh the projection as upstream data changes."""

import time

from apscheduler.schedulers.background import BackgroundScheduler
from prometheus_client import start_http_server

from runway.config import get_settings
from runway.engine.engine import CashFlowEngine
from runway.errors import MissingStartingBalance, SourceUnavailable
from runway.logging_config import get_logger
from runway.metrics import measure_duration, refresh_job_duration_seconds
from runway.sources.sources import DatabaseSource

logger = get_logger(__name__)


@measure_duration(refresh_job_duration_seconds)
def refresh_job(engine: CashFlowEngine) -> bool:
    """Recompute the projection and opportunities from the latest snapshot.

    Unchanged snapshots are served from the engine memo. Source outages and a
    missing starting balance are logged and the job waits for the next run.

    Args:
        engine (CashFlowEngine): Engine to refresh.

    Returns:
        bool: True if the refresh succeeded.
    """
    try:
        points = engine.project()
        opportunities = engine.extract_opportunities()
    except SourceUnavailable as e:
        logger.error(f"Refresh skipped, snapshot source unavailable: {e}")
        return False
    except MissingStartingBalance as e:
        logger.warning(f"Refresh skipped: {e}")
        return False

    lowest = min((point.running_balance for point in points), default=None)
    logger.info(
        f"Refresh completed: {len(points)} days projected, {len(opportunities)} opportunities",
        extra={"context": {"lowest_balance": lowest}},
    )
    return True


def start_scheduler(engine: CashFlowEngine = None):
    """Start the APScheduler to run refresh_job on a fixed interval.

    The interval comes from REFRESH_INTERVAL_SECONDS. Blocks and keeps the
    process alive until interrupted.

    Returns:
        None
    """
    settings = get_settings()
    engine = engine or CashFlowEngine(
        DatabaseSource(use_available_balance=settings.use_available_balance), settings
    )
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        refresh_job, "interval", seconds=settings.refresh_interval_seconds, args=[engine]
    )
    scheduler.start()
    logger.info(f"Scheduler started. Next runs: {scheduler.get_jobs()}")
    try:
        # Keep the scheduler alive
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown()
        logger.info("Scheduler stopped.")


if __name__ == "__main__":
    start_http_server(get_settings().metrics_port)
    start_scheduler()
