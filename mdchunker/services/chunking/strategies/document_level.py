"""Document-level chunking: the whole source as a single chunk."""

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.services.chunking.assembler import ChunkAssembler
from mdchunker.services.chunking.nodes import Document, NodeKind, SourceSpan, walk
from mdchunker.services.chunking.strategies.base import BaseChunkingStrategy

_COUNTED_KINDS = {
    NodeKind.HEADING: "heading_count",
    NodeKind.PARAGRAPH: "paragraph_count",
    NodeKind.CODE: "code_block_count",
    NodeKind.TABLE: "table_count",
    NodeKind.LIST: "list_count",
}


def document_complexity(headings: int, code_blocks: int, tables: int, lists: int) -> str:
    """Weighted structure score bucketed into simple|moderate|complex|very_complex."""
    score = headings + code_blocks * 2 + tables * 3 + lists
    if score <= 5:
        return "simple"
    if score <= 15:
        return "moderate"
    if score <= 30:
        return "complex"
    return "very_complex"


def document_metadata(document: Document) -> dict[str, str]:
    """Structure counts and complexity for the whole document."""
    counts = {key: 0 for key in _COUNTED_KINDS.values()}
    max_heading_level = 0
    for node, _depth in walk(document.children):
        key = _COUNTED_KINDS.get(node.kind)
        if key:
            counts[key] += 1
        if node.kind == NodeKind.HEADING:
            max_heading_level = max(max_heading_level, node.level)
    meta = {key: str(value) for key, value in counts.items()}
    meta["max_heading_level"] = str(max_heading_level)
    meta["total_size"] = str(len(document.source))
    meta["document_complexity"] = document_complexity(
        counts["heading_count"], counts["code_block_count"], counts["table_count"], counts["list_count"]
    )
    return meta


class DocumentLevelStrategy(BaseChunkingStrategy):
    """Emits exactly one chunk of type 'document' whose content is the full source."""

    @property
    def strategy_name(self) -> str:
        return "document-level"

    @property
    def description(self) -> str:
        return "Treat the whole document as one chunk"

    def chunk(self, document: Document, assembler: ChunkAssembler) -> None:
        meta = {"strategy": self.strategy_name, **document_metadata(document)}
        builder = assembler.open(chunk_type="document", level=0, metadata=meta)
        builder.content = document.source
        builder.text = " ".join(node.plain_text for node in document.children if node.plain_text)
        builder.node_count = len(document.children)
        lines = document.source.split("\n")
        builder.start = SourceSpan(1, 1, 1, 1)
        builder.end = SourceSpan(len(lines), 1, len(lines), len(lines[-1]))
        builder.metadata["word_count"] = str(len(builder.text.split()))
        # One chunk per document, even when the source is blank.
        assembler.finalize(builder, allow_merge_forward=False, keep_empty=True)

    def validate_config(self, config: StrategyConfig) -> None:
        super().validate_config(config)
        if config.max_depth or config.min_depth:
            self._reject("Document-level strategy does not use heading depth", max_depth=config.max_depth)
        if config.include_types or config.exclude_types:
            self._reject("Document-level strategy does not filter node kinds")
