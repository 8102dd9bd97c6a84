"""Log output for worker processes.

Worker events carry their fields as ``extra`` attributes on the record
(``processed_count``, ``exit_code``, ...).  The JSON format emits those
fields as top-level keys so log shippers can index them.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_handler: Optional[logging.Handler] = None


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the ``extra`` fields attached to ``record``."""
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JsonFormatter(logging.Formatter):
    """Render a record and its event fields as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            **record_fields(record),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(
    level: str | None = None, fmt: str | None = None
) -> logging.Handler:
    """Attach the worker's stdout handler to the root logger.

    ``level`` and ``fmt`` default to ``LOG_LEVEL`` and ``LOG_FORMAT``
    (``plain`` or ``json``).  Calling again returns the installed handler.
    """
    global _handler
    if _handler is not None:
        return _handler

    fmt = (fmt or os.getenv("LOG_FORMAT", "plain")).lower()
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter() if fmt == "json" else logging.Formatter(PLAIN_FORMAT)
    )
    root = logging.getLogger()
    root.addHandler(handler)
    number = logging.getLevelName(level)
    root.setLevel(number if isinstance(number, int) else logging.INFO)
    _handler = handler
    return handler


def reset_logging() -> None:
    """Detach the handler installed by :func:`setup_logging`."""
    global _handler
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler = None
