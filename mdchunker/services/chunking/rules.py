"""Chunking rules: condition/action pairs, build-time validation, and priority ordering."""

from dataclasses import dataclass

from mdchunker.services.chunking.actions import ACTION_TYPES, Action
from mdchunker.services.chunking.conditions import CONDITION_TYPES, Condition
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import Node


@dataclass(frozen=True)
class ChunkingRule:
    """Condition/action pair. Higher priority is evaluated first."""

    name: str
    condition: Condition
    action: Action
    priority: int = 0
    description: str = ""
    enabled: bool = True

    def matches(self, node: Node, has_open_chunk: bool, depth: int = 0) -> bool:
        return self.enabled and self.condition.matches(node, has_open_chunk, depth)


def validate_rules(rules: list[ChunkingRule]) -> None:
    """Reject empty or duplicate names and conditions/actions outside the known variants."""
    seen: set[str] = set()
    for rule in rules:
        if not rule.name:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "Rule name must not be empty")
        if rule.name in seen:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "Duplicate rule name", context={"rule_name": rule.name})
        seen.add(rule.name)
        if not isinstance(rule.condition, CONDITION_TYPES):
            raise ChunkerError(
                ErrorType.CONFIG_INVALID,
                "Rule condition is missing or unsupported",
                context={"rule_name": rule.name, "condition": type(rule.condition).__name__},
            )
        if not isinstance(rule.action, ACTION_TYPES):
            raise ChunkerError(
                ErrorType.CONFIG_INVALID,
                "Rule action is missing or unsupported",
                context={"rule_name": rule.name, "action": type(rule.action).__name__},
            )
        try:
            rule.condition.validate()
        except ChunkerError as e:
            e.with_context("rule_name", rule.name)
            raise


def sort_rules(rules: list[ChunkingRule]) -> tuple[ChunkingRule, ...]:
    """Descending priority; ties keep registration order (sorted() is stable)."""
    return tuple(sorted(rules, key=lambda r: -r.priority))

