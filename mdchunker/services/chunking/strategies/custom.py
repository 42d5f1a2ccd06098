"""
Rule-driven custom strategies. A builder collects rules, validates them, and freezes them
into a CustomStrategy whose rule tuple is sorted by descending priority.
"""

from dataclasses import replace

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.config.logging import get_logger
from mdchunker.services.chunking.actions import CreateSeparateChunk, MergeWithParent
from mdchunker.services.chunking.assembler import ChunkAssembler
from mdchunker.services.chunking.conditions import ContentSize, ContentType, HeadingLevel
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import Document, Node, NodeKind
from mdchunker.services.chunking.rules import ChunkingRule, sort_rules, validate_rules
from mdchunker.services.chunking.strategies.base import BaseChunkingStrategy
from mdchunker.services.chunking.strategies.element_level import ElementLevelStrategy

logger = get_logger(__name__)


class CustomStrategy(BaseChunkingStrategy):
    """
    Pre-order traversal applying the first matching enabled rule to each node.
    Unmatched leaves join the open chunk (or open one of their own kind); unmatched
    containers have their children visited individually. With no enabled rules the
    strategy behaves exactly like element-level.
    """

    def __init__(
        self,
        name: str,
        rules: tuple[ChunkingRule, ...],
        description: str = "",
        config: StrategyConfig | None = None,
    ):
        self._name = name
        self._description = description
        self.rules = rules
        super().__init__(config or StrategyConfig(name=name))

    @property
    def strategy_name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def with_config(self, config: StrategyConfig | None) -> "CustomStrategy":
        """Same rules, different size/type configuration."""
        config = config.model_copy(update={"name": self._name}) if config is not None else None
        return CustomStrategy(self._name, self.rules, self._description, config)

    def enabled_rules(self) -> tuple[ChunkingRule, ...]:
        return tuple(r for r in self.rules if r.enabled)

    def chunk(self, document: Document, assembler: ChunkAssembler) -> None:
        rules = self.enabled_rules()
        if not rules:
            logger.info("Custom strategy has no enabled rules; using element-level", extra={"strategy": self._name})
            ElementLevelStrategy().chunk(document, assembler)
            return
        self._visit(document.children, 0, rules, assembler)

    def _visit(self, nodes: tuple[Node, ...], depth: int, rules: tuple[ChunkingRule, ...], assembler: ChunkAssembler) -> None:
        for node in nodes:
            if not assembler.accepts(node.kind):
                continue
            rule = self._first_match(rules, node, assembler.has_open_chunk(), depth)
            if rule is not None:
                consumed = rule.action.apply(node, assembler)
                if not consumed and node.children:
                    self._visit(node.children, depth + 1, rules, assembler)
                continue
            if node.is_container and node.children:
                self._visit(node.children, depth + 1, rules, assembler)
            elif assembler.has_open_chunk():
                assembler.extend_current(node)
            else:
                assembler.start_chunk(node, metadata={"processed_by": "default", "strategy": self._name})

    @staticmethod
    def _first_match(
        rules: tuple[ChunkingRule, ...], node: Node, has_open_chunk: bool, depth: int
    ) -> ChunkingRule | None:
        for rule in rules:
            if rule.matches(node, has_open_chunk, depth):
                return rule
        return None


class CustomStrategyBuilder:
    """Collects rules for a custom strategy. Every mutator returns the builder for chaining."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._rules: list[ChunkingRule] = []
        self._config: StrategyConfig | None = None

    @property
    def rules(self) -> list[ChunkingRule]:
        return list(self._rules)

    def add_rule(self, rule: ChunkingRule) -> "CustomStrategyBuilder":
        self._rules.append(rule)
        return self

    def remove_rule(self, name: str) -> "CustomStrategyBuilder":
        self._index_of(name)
        self._rules = [r for r in self._rules if r.name != name]
        return self

    def enable_rule(self, name: str) -> "CustomStrategyBuilder":
        i = self._index_of(name)
        self._rules[i] = replace(self._rules[i], enabled=True)
        return self

    def disable_rule(self, name: str) -> "CustomStrategyBuilder":
        i = self._index_of(name)
        self._rules[i] = replace(self._rules[i], enabled=False)
        return self

    def clear_rules(self) -> "CustomStrategyBuilder":
        self._rules.clear()
        return self

    def with_config(self, config: StrategyConfig) -> "CustomStrategyBuilder":
        self._config = config
        return self

    def _index_of(self, name: str) -> int:
        for i, rule in enumerate(self._rules):
            if rule.name == name:
                return i
        raise ChunkerError(ErrorType.CONFIG_INVALID, "Rule not found", context={"rule_name": name})

    def build(self) -> CustomStrategy:
        """Validate rules and freeze them. Raises ChunkerError(ConfigInvalid) on bad rules or names."""
        if not self.name:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "Custom strategy name must not be empty")
        validate_rules(self._rules)
        ordered = sort_rules(self._rules)
        config = self._config.model_copy(update={"name": self.name}) if self._config is not None else None
        logger.debug("Custom strategy built", extra={"strategy": self.name, "rules": [r.name for r in ordered]})
        return CustomStrategy(self.name, ordered, self.description, config)


def heading_based_builder(name: str, max_level: int) -> CustomStrategyBuilder:
    """Headings up to max_level start chunks; paragraphs, lists and blockquotes join them."""
    builder = CustomStrategyBuilder(name, f"Heading-based chunking up to level {max_level}")
    builder.add_rule(
        ChunkingRule(
            name="heading-separate",
            description=f"Headings of level 1-{max_level} start a new chunk",
            condition=HeadingLevel(1, max_level),
            action=CreateSeparateChunk("", {"heading_based": "true"}),
            priority=100,
        )
    )
    builder.add_rule(
        ChunkingRule(
            name="content-merge",
            description="Paragraphs, lists and blockquotes join the preceding chunk",
            condition=ContentType(NodeKind.PARAGRAPH, NodeKind.LIST, NodeKind.BLOCKQUOTE),
            action=MergeWithParent("\n\n"),
            priority=50,
        )
    )
    return builder


def content_type_based_builder(name: str, separate_types: list[str], merge_types: list[str]) -> CustomStrategyBuilder:
    """Kinds in separate_types start chunks; kinds in merge_types join the open chunk."""
    builder = CustomStrategyBuilder(name, "Content-type-based chunking")
    if separate_types:
        builder.add_rule(
            ChunkingRule(
                name="separate-types",
                description=f"{', '.join(separate_types)} start a new chunk",
                condition=ContentType(*separate_types),
                action=CreateSeparateChunk("", {"content_type_based": "true"}),
                priority=100,
            )
        )
    if merge_types:
        builder.add_rule(
            ChunkingRule(
                name="merge-types",
                description=f"{', '.join(merge_types)} join the preceding chunk",
                condition=ContentType(*merge_types),
                action=MergeWithParent("\n\n"),
                priority=50,
            )
        )
    return builder


def size_based_builder(name: str, min_size: int, max_size: int) -> CustomStrategyBuilder:
    """Large nodes stand alone, small nodes join the open chunk, medium nodes start a new chunk."""
    builder = CustomStrategyBuilder(name, f"Size-based chunking, range {min_size}-{max_size}")
    builder.add_rule(
        ChunkingRule(
            name="large-content-separate",
            description=f"Content longer than {max_size} characters stands alone",
            condition=ContentSize(max_size + 1, 0),
            action=CreateSeparateChunk("", {"size_based": "true", "content_size": "large"}),
            priority=100,
        )
    )
    # ContentSize(0, 0) is unbounded, so a minimum of 1 or less gets no merge rule.
    if min_size > 1:
        builder.add_rule(
            ChunkingRule(
                name="small-content-merge",
                description=f"Content shorter than {min_size} characters joins the preceding chunk",
                condition=ContentSize(0, min_size - 1),
                action=MergeWithParent(" "),
                priority=80,
            )
        )
    builder.add_rule(
        ChunkingRule(
            name="medium-content-separate",
            description=f"Content of {min_size}-{max_size} characters starts a new chunk",
            condition=ContentSize(min_size, max_size),
            action=CreateSeparateChunk("", {"size_based": "true", "content_size": "medium"}),
            priority=60,
        )
    )
    return builder
