"""Prometheus metrics for the projection engine and its collaborators.

Histograms time each engine component and the background jobs; counters track
events dropped during aggregation and memo hits in the engine facade.
"""

import functools

from prometheus_client import Counter, Histogram

settlement_classification_duration_seconds = Histogram(
    "settlement_classification_duration_seconds",
    "Duration of settlement classification and payout event conversion",
)
aggregation_duration_seconds = Histogram(
    "aggregation_duration_seconds", "Duration of daily event aggregation"
)
balance_projection_duration_seconds = Histogram(
    "balance_projection_duration_seconds", "Duration of running balance projection"
)
credit_projection_duration_seconds = Histogram(
    "credit_projection_duration_seconds", "Duration of available credit projection"
)
opportunity_extraction_duration_seconds = Histogram(
    "opportunity_extraction_duration_seconds", "Duration of buying opportunity extraction"
)
opportunity_search_duration_seconds = Histogram(
    "opportunity_search_duration_seconds", "Duration of buying opportunity search"
)
refresh_job_duration_seconds = Histogram(
    "refresh_job_duration_seconds", "Duration of the scheduled projection refresh"
)
etl_duration_seconds = Histogram("etl_duration_seconds", "Duration of CSV snapshot ingestion")

skipped_events_total = Counter(
    "skipped_events_total", "Malformed events skipped during projection", ["reason"]
)
projection_cache_hits_total = Counter(
    "projection_cache_hits_total", "Engine results served from the snapshot memo", ["operation"]
)


def measure_duration(metric):
    """Decorator to measure execution duration of a function using the provided Prometheus Histogram metric.

    Args:
        metric (Histogram): Prometheus Histogram to record execution time.

    Returns:
        Callable: A decorator that wraps a function to measure and record its execution duration.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with metric.time():
                return func(*args, **kwargs)

        return wrapper

    return decorator
