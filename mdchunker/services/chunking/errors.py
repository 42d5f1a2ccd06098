"""Chunker error taxonomy, error records, and the mode-aware error handler."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from mdchunker.config.logging import get_logger
from mdchunker.utils.time import iso_utc, utc_now

logger = get_logger(__name__)


class ErrorType(str, Enum):
    """Kinds of violation the engine can record."""

    INVALID_INPUT = "InvalidInput"
    PARSING_FAILED = "ParsingFailed"
    MEMORY_EXHAUSTED = "MemoryExhausted"
    TIMEOUT = "Timeout"
    CONFIG_INVALID = "ConfigInvalid"
    CHUNK_TOO_LARGE = "ChunkTooLarge"
    STRATEGY_NOT_FOUND = "StrategyNotFound"
    STRATEGY_CONFIG_INVALID = "StrategyConfigInvalid"
    STRATEGY_EXECUTION_FAILED = "StrategyExecutionFailed"


class ErrorHandlingMode(str, Enum):
    """How a run reacts to a constraint violation."""

    STRICT = "strict"
    PERMISSIVE = "permissive"
    SILENT = "silent"


# Violations caused by caller input or configuration are warnings; the rest are errors.
_WARNING_TYPES = frozenset(
    {
        ErrorType.INVALID_INPUT,
        ErrorType.CONFIG_INVALID,
        ErrorType.CHUNK_TOO_LARGE,
        ErrorType.STRATEGY_CONFIG_INVALID,
    }
)


class ChunkerError(Exception):
    """Raised (strict mode) or recorded (all modes) when a chunking constraint is violated."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.cause = cause
        self.context: dict[str, Any] = dict(context or {})
        self.timestamp: datetime = utc_now()

    def with_context(self, key: str, value: Any) -> "ChunkerError":
        """Attach a context value and return self, so calls can be chained."""
        self.context[key] = value
        return self

    def __str__(self) -> str:
        text = f"[{self.error_type.value}] {self.message}"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Serializable view for API responses and logs."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "context": {k: v if isinstance(v, (int, float, bool)) else str(v) for k, v in self.context.items()},
            "cause": str(self.cause) if self.cause is not None else None,
            "timestamp": iso_utc(self.timestamp),
        }


class ErrorHandler:
    """
    Accumulating error log plus mode-specific propagation.
    Every handled error is recorded and logged; only strict mode raises.
    """

    def __init__(self, mode: ErrorHandlingMode = ErrorHandlingMode.PERMISSIVE):
        self.mode = mode
        self._errors: list[ChunkerError] = []

    def record(self, error: ChunkerError) -> None:
        """Record and log an error without propagating it, whatever the mode."""
        self._errors.append(error)
        level = logging.WARNING if error.error_type in _WARNING_TYPES else logging.ERROR
        logger.log(
            level,
            "Chunker error recorded",
            extra={"error_type": error.error_type.value, "error": error.message, "context": error.context},
        )

    def handle(self, error: ChunkerError) -> None:
        """Record the error, then raise it in strict mode."""
        self.record(error)
        if self.mode == ErrorHandlingMode.STRICT:
            raise error

    def get_errors(self) -> list[ChunkerError]:
        return list(self._errors)

    def get_errors_by_type(self, error_type: ErrorType) -> list[ChunkerError]:
        return [e for e in self._errors if e.error_type == error_type]

    def has_errors(self) -> bool:
        return bool(self._errors)

    def clear_errors(self) -> None:
        self._errors.clear()

    def error_count(self) -> int:
        return len(self._errors)

    def error_count_by_type(self) -> dict[ErrorType, int]:
        counts: dict[ErrorType, int] = {}
        for e in self._errors:
            counts[e.error_type] = counts.get(e.error_type, 0) + 1
        return counts
