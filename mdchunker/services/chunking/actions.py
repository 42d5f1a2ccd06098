"""Rule actions: a closed set of placement decisions applied through the assembler."""

from dataclasses import dataclass, field
from typing import Union

from mdchunker.services.chunking.assembler import DEFAULT_SEPARATOR, ChunkAssembler
from mdchunker.services.chunking.nodes import Node


@dataclass(frozen=True)
class CreateSeparateChunk:
    """
    Close the open chunk and start a new one seeded with the node's whole subtree.
    `label` becomes the chunk type; empty label keeps the node kind.
    """

    label: str = ""
    extra_metadata: dict[str, str] = field(default_factory=dict, hash=False)

    def apply(self, node: Node, assembler: ChunkAssembler) -> bool:
        metadata = {**self.extra_metadata, "action": "create-separate-chunk", "custom_rule": "true"}
        assembler.start_chunk(node, chunk_type=self.label or node.kind.value, metadata=metadata)
        return True


@dataclass(frozen=True)
class MergeWithParent:
    """Append the node to the open chunk with `separator`; open a chunk of the node's kind if none is open."""

    separator: str = DEFAULT_SEPARATOR

    def apply(self, node: Node, assembler: ChunkAssembler) -> bool:
        if not assembler.has_open_chunk():
            assembler.start_chunk(
                node,
                metadata={"action": "create-separate-chunk", "custom_rule": "true", "fallback_to_new_chunk": "true"},
            )
            return True
        assembler.extend_current(node, self.separator)
        assembler.current.metadata["merged"] = "true"
        assembler.current.metadata["merged_node_type"] = node.kind.value
        return True


@dataclass(frozen=True)
class SkipNode:
    """Drop the node and its subtree from the output."""

    reason: str = ""

    def apply(self, node: Node, assembler: ChunkAssembler) -> bool:
        return True


Action = Union[CreateSeparateChunk, MergeWithParent, SkipNode]
ACTION_TYPES: tuple[type, ...] = (CreateSeparateChunk, MergeWithParent, SkipNode)
