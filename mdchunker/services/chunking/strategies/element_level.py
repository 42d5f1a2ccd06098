"""Element-level chunking: one chunk per eligible top-level block."""

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.services.chunking.assembler import ChunkAssembler
from mdchunker.services.chunking.nodes import Document
from mdchunker.services.chunking.strategies.base import BaseChunkingStrategy


class ElementLevelStrategy(BaseChunkingStrategy):
    """Each top-level heading, paragraph, code block, table, list, blockquote or break is its own chunk."""

    @property
    def strategy_name(self) -> str:
        return "element-level"

    @property
    def description(self) -> str:
        return "One chunk per top-level Markdown element"

    def chunk(self, document: Document, assembler: ChunkAssembler) -> None:
        for node in document.children:
            if assembler.accepts(node.kind):
                assembler.emit(node)

    def validate_config(self, config: StrategyConfig) -> None:
        super().validate_config(config)
        if config.max_depth or config.min_depth:
            self._reject("Element-level strategy does not use heading depth", max_depth=config.max_depth)
