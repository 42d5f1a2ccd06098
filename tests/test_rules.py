import pytest

from mdchunker.services.chunking.actions import CreateSeparateChunk, SkipNode
from mdchunker.services.chunking.conditions import ContentSize, ContentType, Depth, HeadingLevel
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import NodeKind
from mdchunker.services.chunking.parser import parse_markdown
from mdchunker.services.chunking.rules import ChunkingRule, sort_rules, validate_rules


def _nodes(source):
    return parse_markdown(source).children


def test_heading_level_condition():
    h1, h3 = _nodes("# a\n\n### c")
    cond = HeadingLevel(1, 2)
    assert cond.matches(h1, False)
    assert not cond.matches(h3, False)


def test_content_type_condition_accepts_enum_and_strings():
    para, code = _nodes("text\n\n```\nx\n```")
    cond = ContentType(NodeKind.CODE, "table")
    assert cond.kinds == frozenset({"code", "table"})
    assert cond.matches(code, False)
    assert not cond.matches(para, True)


def test_content_size_uses_raw_length_and_zero_max_is_unbounded():
    (para,) = _nodes("**bold** text")
    assert len(para.raw_content) == 13
    assert ContentSize(13, 13).matches(para, False)
    assert not ContentSize(0, 12).matches(para, False)
    assert ContentSize(5, 0).matches(para, False)


def test_depth_condition():
    (para,) = _nodes("text")
    assert Depth(1, 0).matches(para, False, depth=2)
    assert not Depth(1, 0).matches(para, False, depth=0)
    assert not Depth(0, 1).matches(para, False, depth=2)


def test_condition_validation():
    with pytest.raises(ChunkerError) as exc:
        HeadingLevel(3, 2).validate()
    assert exc.value.error_type == ErrorType.CONFIG_INVALID
    with pytest.raises(ChunkerError):
        HeadingLevel(1, 7).validate()
    with pytest.raises(ChunkerError):
        ContentType().validate()
    with pytest.raises(ChunkerError):
        ContentType("chapter").validate()
    ContentSize(10, 0).validate()


def test_disabled_rule_never_matches():
    (para,) = _nodes("text")
    rule = ChunkingRule(name="r", condition=ContentType("paragraph"), action=SkipNode(), enabled=False)
    assert not rule.matches(para, False)


def test_validate_rules_rejects_duplicate_names():
    rules = [
        ChunkingRule(name="same", condition=ContentType("paragraph"), action=SkipNode()),
        ChunkingRule(name="same", condition=ContentType("code"), action=SkipNode()),
    ]
    with pytest.raises(ChunkerError) as exc:
        validate_rules(rules)
    assert exc.value.error_type == ErrorType.CONFIG_INVALID
    assert exc.value.context["rule_name"] == "same"


def test_validate_rules_rejects_unknown_variants_and_bad_bounds():
    with pytest.raises(ChunkerError):
        validate_rules([ChunkingRule(name="r", condition="paragraph", action=SkipNode())])
    with pytest.raises(ChunkerError):
        validate_rules([ChunkingRule(name="r", condition=ContentType("code"), action="skip")])
    with pytest.raises(ChunkerError) as exc:
        validate_rules([ChunkingRule(name="sized", condition=ContentSize(10, 5), action=SkipNode())])
    assert exc.value.context["rule_name"] == "sized"


def test_sort_rules_is_stable_by_descending_priority():
    a = ChunkingRule(name="a", condition=ContentType("code"), action=SkipNode(), priority=50)
    b = ChunkingRule(name="b", condition=ContentType("code"), action=CreateSeparateChunk(), priority=100)
    c = ChunkingRule(name="c", condition=ContentType("code"), action=SkipNode(), priority=50)
    assert [r.name for r in sort_rules([a, b, c])] == ["b", "a", "c"]
