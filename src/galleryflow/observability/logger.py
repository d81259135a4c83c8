"""JSON log lines for the upload pipeline.

Each stage logs through its own child of the ``galleryflow`` logger
(``galleryflow.intake``, ``galleryflow.scheduler``, ``galleryflow.transport``
and so on) and attaches the item it is working on as structured fields::

    {"ts": "2026-10-19T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "galleryflow.scheduler", "message": "Upload failed",
     "op": "upload", "item_id": "img-3f2a", "remote_key": "owner-1/...",
     "error": "Storage returned 503 on POST /object/..."}

Storage credentials never reach the output: values under
:data:`REDACTED_FIELDS` are replaced before serialisation.

Usage::

    from galleryflow.observability import get_logger

    log = get_logger("galleryflow.scheduler")
    log.info("Upload complete", extra={"extra_fields": {"item_id": "img-1"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

REDACTED_FIELDS: frozenset[str] = frozenset({"storage_key", "apikey", "authorization"})
_REDACTED = "***"


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    ``ts``, ``level``, ``logger`` and ``message`` are always present.  Fields
    from ``extra={"extra_fields": {...}}`` are merged at the top level, with
    credential fields masked.  A traceback lands under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(
                (key, _REDACTED if key.lower() in REDACTED_FIELDS else value)
                for key, value in extra_fields.items()
            )

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# Names that already carry a handler; get_logger attaches at most one.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "galleryflow",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the pipeline logger *name*, configured for JSON output once.

    Parameters
    ----------
    name:
        Logger name.  Stages use a ``galleryflow.<stage>`` child.
    level:
        Minimum log level as an ``int`` or case-insensitive string.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Level and stream apply only on the first call for *name*; later calls
    return the same logger untouched.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        # The handler above already writes the line; keep it off the root.
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
