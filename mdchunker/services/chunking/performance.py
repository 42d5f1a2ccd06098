"""Per-run performance counters: elapsed time, throughput, and resident memory."""

from dataclasses import asdict, dataclass
from typing import Any

import psutil

from mdchunker.config.logging import get_logger
from mdchunker.utils.time import monotonic

logger = get_logger(__name__)


@dataclass(frozen=True)
class PerformanceStats:
    """Snapshot of one run. Times in seconds, memory in bytes."""

    processing_time: float = 0.0
    memory_used: int = 0
    peak_memory: int = 0
    chunks_per_second: float = 0.0
    bytes_per_second: float = 0.0
    total_chunks: int = 0
    total_bytes: int = 0
    chunk_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _resident_memory() -> int:
    return psutil.Process().memory_info().rss


class PerformanceMonitor:
    """
    Collects counters for a single chunking run. Not thread-safe; one monitor per engine.
    Memory figures are resident-set deltas relative to start().
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._started_at: float | None = None
        self._stopped_at: float | None = None
        self._start_memory = 0
        self._peak_memory = 0
        self._end_memory = 0
        self.total_chunks = 0
        self.total_bytes = 0
        self.chunk_bytes = 0

    def start(self) -> None:
        self.reset()
        self._started_at = monotonic()
        self._start_memory = _resident_memory()
        self._peak_memory = self._start_memory

    def stop(self) -> None:
        self._stopped_at = monotonic()
        self._end_memory = self.sample_memory()

    def sample_memory(self) -> int:
        """Read resident memory and update the peak. Returns the current reading."""
        current = _resident_memory()
        if current > self._peak_memory:
            self._peak_memory = current
        return current

    def record_bytes(self, count: int) -> None:
        self.total_bytes += count

    def record_chunk(self, content_length: int) -> None:
        self.total_chunks += 1
        self.chunk_bytes += content_length

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._stopped_at if self._stopped_at is not None else monotonic()
        return end - self._started_at

    def get_stats(self) -> PerformanceStats:
        elapsed = self.elapsed()
        return PerformanceStats(
            processing_time=elapsed,
            memory_used=max(self._end_memory - self._start_memory, 0),
            peak_memory=max(self._peak_memory - self._start_memory, 0),
            chunks_per_second=self.total_chunks / elapsed if elapsed > 0 else 0.0,
            bytes_per_second=self.total_bytes / elapsed if elapsed > 0 else 0.0,
            total_chunks=self.total_chunks,
            total_bytes=self.total_bytes,
            chunk_bytes=self.chunk_bytes,
        )

    def log_summary(self, strategy: str) -> None:
        stats = self.get_stats()
        logger.info(
            "Chunking run finished",
            extra={
                "strategy": strategy,
                "total_chunks": stats.total_chunks,
                "total_bytes": stats.total_bytes,
                "processing_time": round(stats.processing_time, 6),
                "peak_memory": stats.peak_memory,
            },
        )
