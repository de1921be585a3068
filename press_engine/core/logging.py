"""Structured logging for Press Engine.

Log lines are flat ``key=value`` pairs. Orchestration context (chain run,
caller, retrieval stage, limits mode) is promoted to fixed keys placed right
after the message so lines from one request can be grepped together.
"""

import logging
import sys
from typing import Any

CONTEXT_FIELDS = ("run_id", "user_id", "chain", "stage", "mode")


class StructuredFormatter(logging.Formatter):
    """key=value formatter with first-class orchestration context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        line = " ".join(f"{k}={v}" for k, v in log_data.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger writing structured lines to stdout.

    Level is DEBUG in the dev environment and INFO otherwise.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        try:
            from press_engine.core.config import get_settings

            level = logging.DEBUG if get_settings().PRESS_ENGINE_ENV == "dev" else logging.INFO
        except Exception:
            # Settings may be incomplete at import time (scripts)
            level = logging.INFO
        logger.setLevel(level)

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with context fields.

    Known context keys (run_id, user_id, chain, stage, mode) become fixed
    fields; anything else is appended after them.
    """
    extra: dict[str, Any] = {field: kwargs.pop(field) for field in CONTEXT_FIELDS if field in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
