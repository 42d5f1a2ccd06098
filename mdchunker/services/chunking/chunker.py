"""
Chunker engine: validates config, resolves the active strategy from its own registry, runs it
over a parsed document through a fresh assembler, and exposes the error log and counters.
Deterministic: the same source and config always yield the same chunk sequence.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

from mdchunker.config.chunking.models import ChunkerConfig, StrategyConfig
from mdchunker.config.chunking.validation import validate_chunker_config
from mdchunker.config.logging import get_logger, log_extra
from mdchunker.config.settings import get_settings
from mdchunker.services.chunking.assembler import ChunkAssembler
from mdchunker.services.chunking.errors import ChunkerError, ErrorHandler, ErrorHandlingMode, ErrorType
from mdchunker.services.chunking.extractors import MetadataExtractor, get_extractor
from mdchunker.services.chunking.models import Chunk
from mdchunker.services.chunking.nodes import Document
from mdchunker.services.chunking.parser import parse_markdown
from mdchunker.services.chunking.performance import PerformanceMonitor, PerformanceStats
from mdchunker.services.chunking.strategies import BaseChunkingStrategy, CustomStrategy, StrategyFactory, StrategyRegistry

logger = get_logger(__name__)


@dataclass
class ChunkingResult:
    """
    Outcome of one run. `error` is the violation that aborted a strict run, an aggregate of
    this run's errors in permissive mode, or None in silent mode.
    """

    chunks: list[Chunk]
    error: ChunkerError | None = None
    errors: list[ChunkerError] = field(default_factory=list)
    stats: PerformanceStats = field(default_factory=PerformanceStats)
    strategy: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


class MarkdownChunker:
    """
    Splits Markdown into chunks with a pluggable strategy.
    One instance is not safe for concurrent calls: the error log and counters are per instance.
    Use one instance per thread, or chunk_documents() for batches.
    """

    def __init__(self, config: ChunkerConfig | None = None):
        config = config or ChunkerConfig()
        self.registry = StrategyRegistry()
        self.error_handler = ErrorHandler(config.error_handling)
        self.monitor = PerformanceMonitor()
        self.config = self._validated(config)
        self.extractors: list[MetadataExtractor] = [get_extractor(name) for name in self.config.extractors]
        strategy_config = self.config.chunking_strategy or StrategyConfig()
        self._strategy = self._build_strategy(strategy_config.name, strategy_config)

    def _validated(self, config: ChunkerConfig) -> ChunkerConfig:
        """
        Return config if its engine fields are valid, otherwise record the failure and fall back
        to defaults. The strategy config is checked when the strategy is built, where a failure
        only resets that strategy to its own defaults.
        """
        try:
            validate_chunker_config(config.model_copy(update={"chunking_strategy": None}))
            return config
        except ChunkerError as e:
            self.error_handler.handle(e)
            logger.warning("Invalid chunker config; using defaults", extra={"error": str(e)})
            return ChunkerConfig(error_handling=config.error_handling)

    def _build_strategy(self, name: str, config: StrategyConfig | None) -> BaseChunkingStrategy:
        if config is not None and config.name != name:
            config = config.model_copy(update={"name": name})
        if not self.registry.has(name):
            error = ChunkerError(ErrorType.STRATEGY_NOT_FOUND, "Unknown chunking strategy", context={"strategy": name})
            self.error_handler.record(error)
            raise error
        try:
            return self.registry.get(name, config)
        except ChunkerError as e:
            e.with_context("strategy", name)
            self.error_handler.handle(e)
            logger.warning("Invalid strategy config; using strategy defaults", extra={"strategy": name})
            return self.registry.get(name, None)

    # Strategy management

    @property
    def strategy(self) -> BaseChunkingStrategy:
        return self._strategy

    @property
    def strategy_name(self) -> str:
        return self._strategy.strategy_name

    def set_strategy(self, name: str, config: StrategyConfig | None = None) -> None:
        """Replace the active strategy for subsequent calls. Unknown names raise StrategyNotFound."""
        self._strategy = self._build_strategy(name, config)
        logger.info("Chunking strategy set", **log_extra({"strategy": name}))

    def register_strategy(self, name: str, factory: StrategyFactory, replace: bool = False) -> None:
        self.registry.register(name, factory, replace=replace)

    def register_custom_strategy(self, strategy: CustomStrategy, replace: bool = False) -> None:
        self.registry.register_custom(strategy, replace=replace)

    def list_strategies(self) -> list[str]:
        return self.registry.list_strategies()

    def add_extractor(self, extractor: MetadataExtractor) -> None:
        self.extractors.append(extractor)

    # Chunking

    def chunk_document(self, source: str | bytes | None) -> list[Chunk]:
        """Chunk Markdown source. Raises ChunkerError in strict mode; otherwise returns best-effort chunks."""
        result = self.chunk(source)
        if result.error is not None and self.error_handler.mode == ErrorHandlingMode.STRICT:
            raise result.error
        return result.chunks

    def chunk(self, source: str | bytes | None) -> ChunkingResult:
        """Parse and chunk Markdown source. Never raises for constraint violations; see ChunkingResult.error."""
        return self._execute(source, document=None)

    def chunk_tree(self, document: Document) -> ChunkingResult:
        """Chunk an already-parsed document tree."""
        return self._execute(document.source, document=document)

    def _execute(self, source: str | bytes | None, document: Document | None) -> ChunkingResult:
        run_start = self.error_handler.error_count()
        strategy = self._strategy
        self.monitor.start()
        chunks: list[Chunk] = []
        failure: ChunkerError | None = None
        try:
            text = self._check_input(source)
            if text is not None:
                if document is None:
                    document = parse_markdown(text)
                assembler = ChunkAssembler(
                    config=self.config,
                    strategy_config=strategy.config,
                    error_handler=self.error_handler,
                    extractors=self.extractors,
                    monitor=self.monitor,
                    strategy_name=strategy.strategy_name,
                )
                strategy.chunk(document, assembler)
                chunks = assembler.finish()
        except ChunkerError as e:
            # Only strict mode propagates out of the handler.
            failure = e
            chunks = []
        finally:
            self.monitor.stop()

        errors = self.error_handler.get_errors()[run_start:]
        self.monitor.log_summary(strategy.strategy_name)
        return ChunkingResult(
            chunks=chunks,
            error=failure or self._aggregate(errors),
            errors=errors,
            stats=self.monitor.get_stats(),
            strategy=strategy.strategy_name,
        )

    def _check_input(self, source: str | bytes | None) -> str | None:
        """Return the source as text, or None when it was rejected (strict mode raises instead)."""
        if source is None:
            self.error_handler.handle(ChunkerError(ErrorType.INVALID_INPUT, "Source must not be None"))
            return None
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as e:
                self.error_handler.handle(ChunkerError(ErrorType.INVALID_INPUT, "Source is not valid UTF-8", cause=e))
                return None
        if not source:
            self.error_handler.handle(ChunkerError(ErrorType.INVALID_INPUT, "Source must not be empty"))
            return None

        size = len(source.encode("utf-8"))
        self.monitor.record_bytes(size)
        settings = get_settings()
        limit = min(settings.max_document_bytes, self.config.memory_limit or settings.max_document_bytes)
        if size > limit:
            self.error_handler.handle(
                ChunkerError(
                    ErrorType.MEMORY_EXHAUSTED,
                    "Document exceeds memory budget",
                    context={"document_size": size, "memory_limit": limit},
                )
            )
            return None
        if size > settings.large_document_bytes:
            logger.warning("Large document", extra={"document_size": size, "strategy": self.strategy_name})
        return source

    def _aggregate(self, errors: list[ChunkerError]) -> ChunkerError | None:
        if not errors or self.error_handler.mode != ErrorHandlingMode.PERMISSIVE:
            return None
        first = errors[0]
        return ChunkerError(
            first.error_type,
            f"{len(errors)} error(s) recorded during chunking",
            context={"error_count": len(errors), "first_error": str(first)},
        )

    # Error log and counters

    def get_errors(self) -> list[ChunkerError]:
        return self.error_handler.get_errors()

    def get_errors_by_type(self, error_type: ErrorType) -> list[ChunkerError]:
        return self.error_handler.get_errors_by_type(error_type)

    def has_errors(self) -> bool:
        return self.error_handler.has_errors()

    def clear_errors(self) -> None:
        self.error_handler.clear_errors()

    def error_count(self) -> int:
        return self.error_handler.error_count()

    def get_performance_stats(self) -> PerformanceStats:
        return self.monitor.get_stats()

    def reset_performance_stats(self) -> None:
        self.monitor.reset()


def chunk_markdown(source: str, config: ChunkerConfig | None = None) -> list[Chunk]:
    """One-shot helper: chunk source with a fresh engine."""
    return MarkdownChunker(config).chunk_document(source)


def chunk_documents(
    sources: list[str],
    config: ChunkerConfig | None = None,
    max_workers: int | None = None,
    setup: Callable[[MarkdownChunker], None] | None = None,
) -> list[ChunkingResult]:
    """
    Chunk several documents concurrently, one engine instance per document so no state is
    shared. `setup` runs on each fresh engine (e.g. to register custom strategies).
    Results are returned in input order.
    """

    def run(source: str) -> ChunkingResult:
        chunker = MarkdownChunker(config)
        if setup is not None:
            setup(chunker)
        return chunker.chunk(source)

    workers = max_workers or get_settings().chunk_workers
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(run, sources))
