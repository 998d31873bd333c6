"""Structured JSON logger for teamwerx.

Every log record is emitted as a single-line JSON object so merge runs can
be grepped or shipped to a log pipeline without extra parsing.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "teamwerx.merge", "message": "delta merged",
     "op": "merge", "domain": "auth", "fingerprint": "3f2a9c01d4e5b6a7"}

Usage::

    from teamwerx.observability import get_logger

    log = get_logger()
    log.info("change applied", extra={"extra_fields": {"change_id": "CH-001"}})

    # Or create a child logger for a sub-module
    log = get_logger("teamwerx.storage")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    Keys come in a fixed order: ``ts`` (the record's creation time in UTC),
    ``level``, ``logger``, ``message``, then the ``extra_fields`` passed on
    the call. Fields whose value is ``None`` are left out, so a merge with
    no change id does not log ``"change_id": null``. A record carrying an
    exception gets an ``error_type`` key, plus ``error_code`` when the
    exception is a :class:`~teamwerx.errors.TeamwerxError`.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] = getattr(record, "extra_fields", None) or {}
        log_entry.update((k, v) for k, v in extra_fields.items() if v is not None)

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            log_entry["error_type"] = type(exc).__name__
            code = getattr(exc, "code", None)
            if code is not None:
                log_entry["error_code"] = getattr(code, "value", code)
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


# One handler per root name, so ``get_logger`` is idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "teamwerx",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Only the ``"teamwerx"`` root gets a handler; child loggers such as
    ``"teamwerx.merge"`` propagate to it.  The CLI lowers the root level
    with ``--verbose``.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"teamwerx"``.
    level:
        Minimum level for a newly configured root logger.  Accepts an
        ``int`` or a case-insensitive string (``"INFO"``).
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        Repeated calls with the same *name* return the same logger and do
        **not** add duplicate handlers.
    """
    logger = logging.getLogger(name)
    root_name = name.split(".", 1)[0]

    if root_name not in _configured_loggers:
        root = logging.getLogger(root_name)
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        root.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)

        # Avoid duplicate lines when the host application configured root.
        root.propagate = False

        _configured_loggers.add(root_name)

    return logger


def set_level(level: int | str, name: str = "teamwerx") -> None:
    """Change the level of an already configured logger."""
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    get_logger(name).setLevel(resolved)
