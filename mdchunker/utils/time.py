"""Clock helpers: UTC wall time for error records, a monotonic clock for run timing."""

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime. Use for error timestamps."""
    return datetime.now(timezone.utc)


def iso_utc(value: datetime) -> str:
    """Millisecond-precision ISO 8601 string with a `Z` suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def monotonic() -> float:
    """Seconds from a clock unaffected by wall-time changes. Only differences are meaningful."""
    return time.perf_counter()
