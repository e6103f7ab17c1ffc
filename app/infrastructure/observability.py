"""Structured Logging — one JSON object per line for the listing service.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Listing-flow extras (listing_id, user_id, event, connection_id, recipients,
      error_code, path) are copied only when set, so a line can be joined to a
      listing or a socket without parsing the message
    - Any LOG_FORMAT other than json gives plain text lines for local runs

Design Decisions:
    - stdlib logging plus a small formatter; callers pass context through `extra`
    - setup_logging runs once in the lifespan, never at import
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "listing_id", "user_id", "event", "connection_id",
    "error_code", "recipients", "path",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
