"""Exceptions raised by the projection engine and its snapshot sources.

Empty search results and unclassifiable settlements are normal outcomes and
are not represented here.
"""

from datetime import date


class RunwayError(Exception):
    """Base class for engine errors."""


class InvalidDateRange(RunwayError, ValueError):
    """Raised when a day range ends before it starts."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: end {end} is before start {start}")


class MissingStartingBalance(RunwayError, ValueError):
    """Raised when no starting balance was supplied for a projection."""

    def __init__(self, message: str = "A starting balance is required to project cash flow"):
        super().__init__(message)


class SourceUnavailable(RunwayError, RuntimeError):
    """Raised when a snapshot source cannot be reached or read."""
