"""Read-only document tree consumed by the chunking strategies."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class NodeKind(str, Enum):
    """Block node kinds the engine understands."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    TABLE = "table"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    THEMATIC_BREAK = "thematic_break"


ALL_NODE_KINDS: frozenset[str] = frozenset(k.value for k in NodeKind)

# Kinds whose children are themselves chunkable blocks.
CONTAINER_KINDS: frozenset[str] = frozenset({NodeKind.LIST.value, NodeKind.BLOCKQUOTE.value})


@dataclass(frozen=True)
class SourceSpan:
    """1-based line/column range of a node in the source. end_col is inclusive."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int


@dataclass(frozen=True)
class Node:
    """A parsed block. `raw_content` is the exact source slice; `plain_text` the rendered text."""

    kind: NodeKind
    span: SourceSpan
    raw_content: str
    plain_text: str
    level: int = 0
    children: tuple["Node", ...] = ()
    attrs: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_container(self) -> bool:
        return self.kind.value in CONTAINER_KINDS


@dataclass(frozen=True)
class Document:
    """Top-level node sequence plus the original source text."""

    children: tuple[Node, ...]
    source: str


def walk(nodes: tuple[Node, ...] | list[Node], depth: int = 0) -> Iterator[tuple[Node, int]]:
    """Yield (node, depth) pairs in depth-first pre-order. Top-level nodes have depth 0."""
    for node in nodes:
        yield node, depth
        if node.children:
            yield from walk(node.children, depth + 1)
