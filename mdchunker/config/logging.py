"""Structured logging setup. Read-only config; no business logic."""

import logging
import sys
from typing import Any

from mdchunker.config.settings import get_settings

# Attributes every LogRecord has; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime", "fields"}


class StructuredFieldsFilter(logging.Filter):
    """Render `extra=` fields (strategy, chunk_size, error_type, ...) as `key=value` pairs on record.fields."""

    def filter(self, record: logging.LogRecord) -> bool:
        pairs = [f"{k}={v}" for k, v in sorted(record.__dict__.items()) if k not in _RECORD_ATTRS]
        record.fields = f" | {' '.join(pairs)}" if pairs else ""
        return True


def configure_logging(level_name: str | None = None) -> None:
    """Configure structured logging for the application. `level_name` overrides settings.log_level."""
    settings = get_settings()
    level = getattr(logging, (level_name or settings.log_level).upper(), logging.INFO)

    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s%(fields)s"
    datefmt = "%Y-%m-%dT%H:%M:%S"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(StructuredFieldsFilter())
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Uvicorn's access log duplicates the route-level logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)


def log_extra(extra: dict[str, Any]) -> dict[str, Any]:
    """Build kwargs for logger.info(..., **log_extra({...})) carrying structured fields."""
    return {"extra": extra}
