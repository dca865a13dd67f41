"""
Structured logging configuration.

Every log line is a single JSON object. Services pass
structured context through ``extra=`` and the formatter
merges it into the payload.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

LOGGER_PREFIX = "fx_ledger"

# Attributes every LogRecord carries; anything else came from extra=
_STDLIB_KEYS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class JSONFormatter(logging.Formatter):
    """Format each record as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_default)


_configured = False
_lock = threading.Lock()


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the fx_ledger logger hierarchy.

    Safe to call more than once; only the first call installs
    a handler.
    """
    global _configured
    logger = logging.getLogger(LOGGER_PREFIX)
    with _lock:
        if not _configured:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)
            logger.propagate = False
            _configured = True
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the fx_ledger namespace."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")
