"""Logging setup for jvmpulse.

All modules log through children of the ``jvmpulse`` logger. Records that
concern one monitored process carry its id as ``extra={"target": ...}``;
the JSON formatter emits it as a separate key.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

ROOT_LOGGER = "jvmpulse"
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Keys: timestamp, level, logger, message, and when present target and
    exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, str] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        target = getattr(record, "target", None)
        if target is not None:
            entry["target"] = str(target)
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Attach a stderr handler to the ``jvmpulse`` logger.

    Repeated calls keep the existing handler and only change the level.
    The logger stops propagating to the root logger so log lines do not
    appear twice next to a Rich live display.

    Args:
        level: Logging level, e.g. ``logging.DEBUG``.
        json_format: Emit JSON lines instead of plain text.

    Returns:
        The ``jvmpulse`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        _JsonFormatter() if json_format else logging.Formatter(_TEXT_FORMAT, _DATE_FORMAT)
    )
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``jvmpulse.<name>``, e.g. ``get_logger("engine.feed")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
