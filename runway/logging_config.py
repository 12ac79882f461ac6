"""
Central logging configuration for the runway engine: JSON logs on stdout.
Fields: timestamp, level, logger, function, message, exception (if any), plus
any structured context passed through ``extra={"context": {...}}``.
Level: default INFO, override via LOG_LEVEL env var.
"""

import logging
import os
import sys
import json
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """Formatter that renders log records as one JSON object per line.

    The JSON log record includes the following fields:
    timestamp (ISO8601 UTC), level, logger, function, message,
    context (when supplied via ``extra``) and exception (if any).
    """

    def format(self, record):
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            log_record["context"] = context
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        # Decimal and date values in context are rendered with str()
        return json.dumps(log_record, default=str)


def configure_logging():
    """Attach the JSON handler to the root logger once.

    The level comes from the LOG_LEVEL environment variable (default INFO);
    unknown level names fall back to INFO.

    Returns:
        None
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        root.setLevel(level)
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes JSON lines to stdout.

    Args:
        name (str): Name of the logger, usually ``__name__``.

    Returns:
        logging.Logger: Configured logger instance.
    """
    configure_logging()
    return logging.getLogger(name)
