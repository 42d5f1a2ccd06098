"""
Chunk assembler: owns in-progress chunk builders, finalizes them into immutable Chunks,
applies global filters and size limits, and routes violations through the error handler.
"""

from dataclasses import dataclass, field

from mdchunker.config.chunking.models import ChunkerConfig, StrategyConfig
from mdchunker.config.logging import get_logger
from mdchunker.services.chunking.errors import ChunkerError, ErrorHandler, ErrorType
from mdchunker.services.chunking.extractors import MetadataExtractor, find_images, find_links
from mdchunker.services.chunking.models import Chunk, ChunkPosition
from mdchunker.services.chunking.nodes import Node, NodeKind, SourceSpan
from mdchunker.services.chunking.performance import PerformanceMonitor
from mdchunker.services.chunking.tables import analyze_table
from mdchunker.utils.ids import compute_content_hash, short_hash

logger = get_logger(__name__)

DEFAULT_SEPARATOR = "\n\n"


@dataclass
class ChunkBuilder:
    """Mutable in-progress chunk. Owned by one strategy slot until finalized."""

    chunk_type: str
    seed_kind: str
    level: int = 0
    content: str = ""
    text: str = ""
    start: SourceSpan | None = None
    end: SourceSpan | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    slot: int = -1
    node_count: int = 0

    def append(self, node: Node, separator: str = DEFAULT_SEPARATOR) -> None:
        """Add a node's raw content and plain text, extending the span to the node's end."""
        self.content = f"{self.content}{separator}{node.raw_content}" if self.content else node.raw_content
        if node.plain_text:
            self.text = f"{self.text}{separator}{node.plain_text}" if self.text else node.plain_text
        if self.start is None:
            self.start = node.span
        self.end = node.span
        self.node_count += 1

    def absorb(self, carried: list["ChunkBuilder"], separator: str = DEFAULT_SEPARATOR) -> None:
        """Prepend chunks that were too small to stand alone."""
        self.content = separator.join([c.content for c in carried if c.content] + ([self.content] if self.content else []))
        self.text = separator.join([c.text for c in carried if c.text] + ([self.text] if self.text else []))
        first = next((c.start for c in carried if c.start is not None), None)
        if first is not None:
            self.start = first
            if self.end is None:
                self.end = carried[-1].end
        previous = int(self.metadata.get("merged_forward", "0"))
        absorbed = sum(int(c.metadata.get("merged_forward", "0")) + 1 for c in carried)
        self.metadata["merged_forward"] = str(previous + absorbed)
        self.node_count += sum(c.node_count for c in carried)

    @property
    def position(self) -> ChunkPosition:
        if self.start is None or self.end is None:
            return ChunkPosition(start_line=0, start_col=0, end_line=0, end_col=0)
        return ChunkPosition(
            start_line=self.start.start_line,
            start_col=self.start.start_col,
            end_line=self.end.end_line,
            end_col=max(self.end.end_col, 0),
        )


def _word_count(text: str) -> str:
    return str(len(text.split()))


class ChunkAssembler:
    """
    Per-run assembly state. A fresh assembler is created for every engine invocation,
    so no builder, slot or id survives between runs.
    """

    def __init__(
        self,
        config: ChunkerConfig,
        strategy_config: StrategyConfig,
        error_handler: ErrorHandler,
        extractors: list[MetadataExtractor] | None = None,
        monitor: PerformanceMonitor | None = None,
        strategy_name: str = "",
    ):
        self.config = config
        self.strategy_config = strategy_config
        self.error_handler = error_handler
        self.extractors = list(extractors or [])
        self.monitor = monitor
        self.strategy_name = strategy_name or strategy_config.name
        self.max_chunk_size = strategy_config.max_chunk_size or config.max_chunk_size
        self.min_chunk_size = strategy_config.min_chunk_size
        self.merge_forward = strategy_config.merge_empty and strategy_config.min_chunk_size > 0
        self._enabled = frozenset(config.enabled_types) if config.enabled_types is not None else None
        self._include = frozenset(strategy_config.include_types)
        self._exclude = frozenset(strategy_config.exclude_types)
        self._slots: list[Chunk | None] = []
        self._carry: list[ChunkBuilder] = []
        self.current: ChunkBuilder | None = None

    # Node eligibility

    def accepts(self, kind: NodeKind | str) -> bool:
        """True if the node kind is enabled globally and considered by the active strategy."""
        kind = kind.value if isinstance(kind, NodeKind) else kind
        if self._enabled is not None and kind not in self._enabled:
            return False
        if self._include and kind not in self._include:
            return False
        return kind not in self._exclude

    # Builder lifecycle

    def open(
        self,
        node: Node | None = None,
        chunk_type: str | None = None,
        level: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> ChunkBuilder:
        """Open a builder in the next output slot, seeded with `node` when given."""
        seed_kind = node.kind.value if node is not None else (chunk_type or "")
        builder = ChunkBuilder(
            chunk_type=chunk_type or seed_kind,
            seed_kind=seed_kind,
            level=level if level is not None else (node.level if node is not None else 0),
            slot=len(self._slots),
        )
        self._slots.append(None)
        if node is not None:
            builder.metadata.update(self.describe(node))
            builder.append(node)
        if metadata:
            builder.metadata.update(metadata)
        if self._carry:
            carried = sorted(self._carry, key=lambda b: b.slot)
            self._carry = []
            builder.absorb(carried)
        return builder

    def extend(self, builder: ChunkBuilder, node: Node, separator: str = DEFAULT_SEPARATOR) -> None:
        """Append a node to an open builder. Malformed tables are reported on the builder."""
        if node.kind == NodeKind.TABLE:
            errors = self.describe(node).get("table_errors")
            if errors:
                builder.metadata["table_errors"] = errors
        builder.append(node, separator)

    def finalize(self, builder: ChunkBuilder, allow_merge_forward: bool = True, keep_empty: bool = False) -> Chunk | None:
        """
        Close a builder. Small chunks may be carried into the next opened chunk; otherwise the
        chunk is filtered (unless keep_empty), trimmed, size-checked, hashed, decorated by
        extractors and stored.
        Returns the stored chunk, or None when it was dropped or carried forward.
        """
        if allow_merge_forward and self.merge_forward and len(builder.content) < self.min_chunk_size:
            self._carry.append(builder)
            return None

        content, text = builder.content, builder.text
        if self.config.filter_empty_chunks and not keep_empty and not content.strip():
            return None
        if not self.config.preserve_whitespace:
            content, text = content.strip(), text.strip()

        metadata = dict(builder.metadata)
        if self.max_chunk_size and len(content) > self.max_chunk_size:
            error = ChunkerError(
                ErrorType.CHUNK_TOO_LARGE,
                "Chunk content exceeds maximum size",
                context={
                    "chunk_index": builder.slot,
                    "chunk_type": builder.chunk_type,
                    "chunk_size": len(content),
                    "max_size": self.max_chunk_size,
                },
            )
            self.error_handler.handle(error)
            metadata["truncated"] = "true"
            metadata["original_size"] = str(len(content))
            content = content[: self.max_chunk_size]
            text = text[: self.max_chunk_size]

        chunk = Chunk(
            id=builder.slot,
            type=builder.chunk_type,
            level=builder.level,
            content=content,
            text=text,
            position=builder.position,
            hash=compute_content_hash(content),
            metadata=metadata,
            links=tuple(find_links(content)),
            images=tuple(find_images(content)),
        )
        chunk = self._run_extractors(chunk, builder.seed_kind)
        self._slots[builder.slot] = chunk
        if self.monitor is not None:
            self.monitor.record_chunk(len(content))
            self.monitor.sample_memory()
        logger.debug(
            "Chunk finalized",
            extra={"chunk_type": chunk.type, "chunk_size": len(content), "hash": short_hash(content)},
        )
        return chunk

    def _run_extractors(self, chunk: Chunk, seed_kind: str) -> Chunk:
        extra: dict[str, str] = {}
        for extractor in self.extractors:
            if extractor.supports(chunk.type) or extractor.supports(seed_kind):
                extra.update(extractor.extract(chunk))
        if not extra:
            return chunk
        return chunk.model_copy(update={"metadata": {**chunk.metadata, **extra}})

    # Singleton buffer used by element-level and custom strategies

    def has_open_chunk(self) -> bool:
        return self.current is not None

    def start_chunk(
        self,
        node: Node,
        chunk_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> ChunkBuilder:
        """Close the open chunk, if any, and open a new one seeded with `node`."""
        self.close_current()
        self.current = self.open(node, chunk_type=chunk_type, metadata=metadata)
        return self.current

    def extend_current(self, node: Node, separator: str = DEFAULT_SEPARATOR) -> None:
        self.extend(self.current, node, separator)

    def close_current(self) -> None:
        if self.current is not None:
            builder, self.current = self.current, None
            self.finalize(builder)

    def emit(self, node: Node, chunk_type: str | None = None, metadata: dict[str, str] | None = None) -> None:
        """Open and immediately close a chunk holding a single node."""
        self.start_chunk(node, chunk_type=chunk_type, metadata=metadata)
        self.close_current()

    def finish(self) -> list[Chunk]:
        """Close everything, emit leftover small chunks standalone, and number the output densely."""
        self.close_current()
        carried = sorted(self._carry, key=lambda b: b.slot)
        self._carry = []
        for builder in carried:
            self.finalize(builder, allow_merge_forward=False)
        chunks = [c for c in self._slots if c is not None]
        return [c if c.id == i else c.model_copy(update={"id": i}) for i, c in enumerate(chunks)]

    # Per-node metadata

    def describe(self, node: Node) -> dict[str, str]:
        """Kind-specific metadata for a node that seeds a chunk."""
        if node.kind == NodeKind.HEADING:
            return {"heading_level": str(node.level), "word_count": _word_count(node.plain_text)}
        if node.kind == NodeKind.PARAGRAPH:
            return {"word_count": _word_count(node.plain_text), "char_count": str(len(node.plain_text))}
        if node.kind == NodeKind.CODE:
            lines = node.plain_text.split("\n") if node.plain_text else []
            return {"language": node.attrs.get("language", ""), "line_count": str(len(lines))}
        if node.kind == NodeKind.LIST:
            return {
                "list_type": "ordered" if node.attrs.get("ordered") else "unordered",
                "item_count": str(node.attrs.get("item_count", 0)),
            }
        if node.kind == NodeKind.BLOCKQUOTE:
            return {"word_count": _word_count(node.plain_text)}
        if node.kind == NodeKind.THEMATIC_BREAK:
            return {"type": "horizontal_rule"}
        if node.kind == NodeKind.TABLE:
            return self._describe_table(node)
        return {}

    def _describe_table(self, node: Node) -> dict[str, str]:
        info = analyze_table(node.raw_content)
        meta = info.metadata()
        if not info.is_well_formed:
            meta["table_errors"] = "; ".join(info.errors)
            # Recorded but never propagated: the table still yields a best-effort chunk.
            self.error_handler.record(
                ChunkerError(
                    ErrorType.PARSING_FAILED,
                    "Malformed table",
                    context={"line": node.span.start_line, "table_errors": meta["table_errors"]},
                )
            )
        return meta
