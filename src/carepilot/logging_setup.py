"""
CarePilot Logging

Structured JSON logging for the carepilot logger namespace.

Engine modules log through logging.getLogger(__name__); nothing is
emitted until an application calls configure_logging().
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional, TextIO

LOGGER_NAME = "carepilot"

# Extra fields copied into the JSON entry when present on the record
EXTRA_FIELDS = (
    "child_id",
    "placement_id",
    "episode_id",
    "signal",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Add extra fields if present
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a JSON handler to the carepilot logger.

    Calling it again replaces the handler rather than adding another.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in list(logger.handlers):
        if isinstance(existing.formatter, JSONFormatter):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    return logger
