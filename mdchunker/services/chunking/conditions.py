"""Rule conditions: a closed set of pure predicates over a single node."""

from dataclasses import dataclass
from typing import Union

from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import ALL_NODE_KINDS, Node, NodeKind


def _check_bounds(name: str, low: int, high: int, unbounded_high: bool) -> None:
    if low < 0 or high < 0:
        raise ChunkerError(ErrorType.CONFIG_INVALID, f"{name} bounds must not be negative", context={"min": low, "max": high})
    if high < low and not (unbounded_high and high == 0):
        raise ChunkerError(ErrorType.CONFIG_INVALID, f"{name} min must not exceed max", context={"min": low, "max": high})


@dataclass(frozen=True)
class HeadingLevel:
    """Heading whose level lies in [min_level, max_level]."""

    min_level: int = 1
    max_level: int = 6

    def matches(self, node: Node, has_open_chunk: bool, depth: int = 0) -> bool:
        return node.kind == NodeKind.HEADING and self.min_level <= node.level <= self.max_level

    def validate(self) -> None:
        _check_bounds("HeadingLevel", self.min_level, self.max_level, unbounded_high=False)
        if self.max_level > 6:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "HeadingLevel max must not exceed 6", context={"max": self.max_level})


@dataclass(frozen=True)
class ContentType:
    """Node whose kind is one of `kinds`."""

    kinds: frozenset[str]

    def __init__(self, *kinds: NodeKind | str):
        values = frozenset(k.value if isinstance(k, NodeKind) else k for k in kinds)
        object.__setattr__(self, "kinds", values)

    def matches(self, node: Node, has_open_chunk: bool, depth: int = 0) -> bool:
        return node.kind.value in self.kinds

    def validate(self) -> None:
        if not self.kinds:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "ContentType needs at least one kind")
        unknown = sorted(self.kinds - ALL_NODE_KINDS)
        if unknown:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "ContentType has unknown kinds", context={"invalid_types": ",".join(unknown)})


@dataclass(frozen=True)
class ContentSize:
    """Raw content length in [min_size, max_size]; max_size 0 means unbounded."""

    min_size: int = 0
    max_size: int = 0

    def matches(self, node: Node, has_open_chunk: bool, depth: int = 0) -> bool:
        size = len(node.raw_content)
        if size < self.min_size:
            return False
        return self.max_size == 0 or size <= self.max_size

    def validate(self) -> None:
        _check_bounds("ContentSize", self.min_size, self.max_size, unbounded_high=True)


@dataclass(frozen=True)
class Depth:
    """Tree depth in [min_depth, max_depth]; top-level nodes have depth 0, max_depth 0 means unbounded."""

    min_depth: int = 0
    max_depth: int = 0

    def matches(self, node: Node, has_open_chunk: bool, depth: int = 0) -> bool:
        if depth < self.min_depth:
            return False
        return self.max_depth == 0 or depth <= self.max_depth

    def validate(self) -> None:
        _check_bounds("Depth", self.min_depth, self.max_depth, unbounded_high=True)


Condition = Union[HeadingLevel, ContentType, ContentSize, Depth]
CONDITION_TYPES: tuple[type, ...] = (HeadingLevel, ContentType, ContentSize, Depth)
