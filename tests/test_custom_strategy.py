import pytest

from mdchunker.config.chunking.models import ChunkerConfig, StrategyConfig
from mdchunker.services.chunking.actions import CreateSeparateChunk, MergeWithParent, SkipNode
from mdchunker.services.chunking.chunker import MarkdownChunker
from mdchunker.services.chunking.conditions import ContentType, Depth
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.rules import ChunkingRule
from mdchunker.services.chunking.strategies.custom import (
    CustomStrategyBuilder,
    content_type_based_builder,
    heading_based_builder,
    size_based_builder,
)


def _run(strategy, source):
    chunker = MarkdownChunker()
    chunker.register_custom_strategy(strategy)
    chunker.set_strategy(strategy.strategy_name)
    return chunker.chunk_document(source)


def test_heading_based_merges_content_into_sections():
    strategy = heading_based_builder("sections", 2).build()
    source = "# A\n\np1\n\n- x\n\n### C\n\np3\n\n## B\n\np4"
    chunks = _run(strategy, source)
    assert [c.content for c in chunks] == ["# A\n\np1\n\n- x\n\n### C\n\np3", "## B\n\np4"]
    assert chunks[0].metadata["heading_based"] == "true"
    assert chunks[0].metadata["custom_rule"] == "true"
    assert chunks[0].metadata["merged"] == "true"
    assert chunks[1].metadata["merged_node_type"] == "paragraph"


def test_higher_priority_rule_wins():
    strategy = (
        CustomStrategyBuilder("prio")
        .add_rule(ChunkingRule(name="low", condition=ContentType("paragraph"), action=CreateSeparateChunk("low"), priority=50))
        .add_rule(ChunkingRule(name="high", condition=ContentType("paragraph"), action=CreateSeparateChunk("high"), priority=100))
        .build()
    )
    assert [r.name for r in strategy.rules] == ["high", "low"]
    (chunk,) = _run(strategy, "just a paragraph")
    assert chunk.type == "high"


def test_skip_node_drops_subtree():
    strategy = (
        CustomStrategyBuilder("no-code")
        .add_rule(ChunkingRule(name="skip-code", condition=ContentType("code"), action=SkipNode("noise")))
        .add_rule(ChunkingRule(name="split", condition=ContentType("paragraph"), action=CreateSeparateChunk()))
        .build()
    )
    chunks = _run(strategy, "first\n\n```\ncode\n```\n\nsecond")
    assert [c.content for c in chunks] == ["first", "second"]


def test_unmatched_containers_are_descended_with_depth():
    strategy = (
        CustomStrategyBuilder("shallow")
        .add_rule(ChunkingRule(name="skip-nested", condition=Depth(1, 0), action=SkipNode()))
        .build()
    )
    chunks = _run(strategy, "intro\n\n- a\n- b")
    assert [c.content for c in chunks] == ["intro"]
    assert chunks[0].metadata["processed_by"] == "default"


def test_merge_without_open_chunk_starts_one():
    strategy = (
        CustomStrategyBuilder("merge-all")
        .add_rule(ChunkingRule(name="merge", condition=ContentType("paragraph"), action=MergeWithParent(" ")))
        .build()
    )
    (chunk,) = _run(strategy, "one\n\ntwo")
    assert chunk.content == "one two"
    assert chunk.metadata["fallback_to_new_chunk"] == "true"


def test_empty_rule_set_behaves_like_element_level():
    source = "# A\n\npara\n\n> quote"
    custom = _run(CustomStrategyBuilder("empty").build(), source)
    element = MarkdownChunker().chunk_document(source)
    assert [(c.type, c.content) for c in custom] == [(c.type, c.content) for c in element]


def test_disabled_rules_are_ignored():
    builder = heading_based_builder("sections", 2).disable_rule("heading-separate").disable_rule("content-merge")
    strategy = builder.build()
    assert strategy.enabled_rules() == ()
    chunks = _run(strategy, "# A\n\npara")
    assert len(chunks) == 2


def test_duplicate_rule_names_fail_build():
    builder = CustomStrategyBuilder("dup")
    builder.add_rule(ChunkingRule(name="r", condition=ContentType("code"), action=SkipNode()))
    builder.add_rule(ChunkingRule(name="r", condition=ContentType("table"), action=SkipNode()))
    with pytest.raises(ChunkerError) as exc:
        builder.build()
    assert exc.value.error_type == ErrorType.CONFIG_INVALID


def test_builder_unknown_rule_name():
    with pytest.raises(ChunkerError):
        CustomStrategyBuilder("x").remove_rule("missing")


def test_builder_edits_rules():
    builder = heading_based_builder("sections", 3).remove_rule("content-merge")
    assert [r.name for r in builder.rules] == ["heading-separate"]
    assert builder.clear_rules().rules == []


def test_content_type_based_builder():
    strategy = content_type_based_builder("types", ["heading", "code"], ["paragraph"]).build()
    chunks = _run(strategy, "# T\n\nabout\n\n```\nx\n```\n\nafter")
    assert [c.type for c in chunks] == ["heading", "code"]
    assert chunks[1].content == "```\nx\n```\n\nafter"


def test_size_based_builder():
    strategy = size_based_builder("sized", 5, 20).build()
    source = "medium sized text\n\ntiny\n\n" + "long " * 10
    chunks = _run(strategy, source)
    assert [c.metadata.get("content_size") for c in chunks] == ["medium", "large"]
    assert chunks[0].content == "medium sized text tiny"


def test_custom_strategy_with_size_config():
    strategy = heading_based_builder("sections", 1).with_config(StrategyConfig(max_chunk_size=10)).build()
    chunker = MarkdownChunker(ChunkerConfig(error_handling="silent"))
    chunker.register_custom_strategy(strategy)
    chunker.set_strategy("sections", StrategyConfig(name="sections", max_chunk_size=10))
    (chunk,) = chunker.chunk_document("# A\n\na paragraph that is long")
    assert len(chunk.content) == 10
    assert chunk.metadata["truncated"] == "true"
