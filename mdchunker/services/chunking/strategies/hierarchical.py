"""
Hierarchical chunking: a heading and the content beneath it form one chunk, with one open
chunk per heading level up to max_depth.
"""

from mdchunker.config.logging import get_logger
from mdchunker.services.chunking.assembler import ChunkAssembler, ChunkBuilder
from mdchunker.services.chunking.nodes import Document, NodeKind
from mdchunker.services.chunking.strategies.base import BaseChunkingStrategy

logger = get_logger(__name__)

# Stack slot for content that precedes the first boundary heading. It sits below every
# heading level, so any boundary heading closes it.
_PREAMBLE_SLOT = 7


class HierarchicalStrategy(BaseChunkingStrategy):
    """
    Headings with min_depth <= level <= max_depth open a chunk and close every open chunk at
    the same or a deeper level. Everything else is appended to the deepest open chunk.
    """

    @property
    def strategy_name(self) -> str:
        return "hierarchical"

    @property
    def description(self) -> str:
        return "Group content under its governing heading up to a maximum depth"

    def chunk(self, document: Document, assembler: ChunkAssembler) -> None:
        max_depth = self.config.max_depth or 6
        min_depth = self.config.min_depth or 1
        # Index = heading level; each builder owns its buffer until finalized.
        stack: list[ChunkBuilder | None] = [None] * (_PREAMBLE_SLOT + 1)

        for node in document.children:
            if not assembler.accepts(node.kind):
                continue
            if node.kind == NodeKind.HEADING and min_depth <= node.level <= max_depth:
                self._close_from(stack, node.level, assembler)
                stack[node.level] = assembler.open(
                    node, metadata={"strategy": self.strategy_name, "hierarchy_level": str(node.level)}
                )
                continue
            target = self._deepest_open(stack)
            if target is None:
                stack[_PREAMBLE_SLOT] = assembler.open(
                    node, chunk_type="preamble", level=0, metadata={"strategy": self.strategy_name}
                )
            else:
                assembler.extend(target, node)

        self._close_from(stack, 1, assembler)

    @staticmethod
    def _deepest_open(stack: list[ChunkBuilder | None]) -> ChunkBuilder | None:
        for builder in reversed(stack):
            if builder is not None:
                return builder
        return None

    @staticmethod
    def _close_from(stack: list[ChunkBuilder | None], level: int, assembler: ChunkAssembler) -> None:
        """Finalize open chunks at `level` and deeper, deepest first."""
        for slot in range(len(stack) - 1, level - 1, -1):
            builder = stack[slot]
            if builder is not None:
                stack[slot] = None
                builder.metadata["node_count"] = str(builder.node_count)
                assembler.finalize(builder)
