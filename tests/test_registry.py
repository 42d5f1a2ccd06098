import pytest

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.services.chunking.chunker import MarkdownChunker
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.strategies import StrategyRegistry
from mdchunker.services.chunking.strategies.custom import heading_based_builder
from mdchunker.services.chunking.strategies.document_level import DocumentLevelStrategy
from mdchunker.services.chunking.strategies.element_level import ElementLevelStrategy


def test_builtins_are_registered():
    registry = StrategyRegistry()
    assert registry.list_strategies() == ["document-level", "element-level", "hierarchical"]
    assert {entry["name"] for entry in registry.describe()} == set(registry.list_strategies())


def test_get_unknown_strategy():
    with pytest.raises(ChunkerError) as exc:
        StrategyRegistry().get("nope")
    assert exc.value.error_type == ErrorType.STRATEGY_NOT_FOUND


def test_duplicate_custom_registration_requires_replace():
    registry = StrategyRegistry()
    strategy = heading_based_builder("sections", 2).build()
    registry.register_custom(strategy)
    with pytest.raises(ChunkerError) as exc:
        registry.register_custom(strategy)
    assert exc.value.error_type == ErrorType.CONFIG_INVALID
    registry.register_custom(strategy, replace=True)
    assert registry.get("sections").strategy_name == "sections"


def test_builtin_names_can_be_overridden():
    registry = StrategyRegistry()
    registry.register("element-level", DocumentLevelStrategy)
    assert isinstance(registry.get("element-level"), DocumentLevelStrategy)
    assert isinstance(StrategyRegistry().get("element-level"), ElementLevelStrategy)


def test_empty_name_is_rejected():
    with pytest.raises(ChunkerError):
        StrategyRegistry().register("", DocumentLevelStrategy)


def test_unregister():
    registry = StrategyRegistry()
    assert registry.unregister("hierarchical")
    assert not registry.unregister("hierarchical")
    assert not registry.has("hierarchical")


def test_registries_are_per_engine():
    first = MarkdownChunker()
    second = MarkdownChunker()
    first.register_custom_strategy(heading_based_builder("sections", 2).build())
    assert "sections" in first.list_strategies()
    assert "sections" not in second.list_strategies()


def test_factory_receives_config():
    registry = StrategyRegistry()
    strategy = registry.get("hierarchical", StrategyConfig(name="hierarchical", max_depth=2))
    assert strategy.config.max_depth == 2
