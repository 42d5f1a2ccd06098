"""Chunking strategy implementations and the per-engine strategy registry."""

from typing import Callable

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.config.logging import get_logger
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.strategies.base import BaseChunkingStrategy
from mdchunker.services.chunking.strategies.custom import CustomStrategy
from mdchunker.services.chunking.strategies.document_level import DocumentLevelStrategy
from mdchunker.services.chunking.strategies.element_level import ElementLevelStrategy
from mdchunker.services.chunking.strategies.hierarchical import HierarchicalStrategy

logger = get_logger(__name__)

StrategyFactory = Callable[[StrategyConfig | None], BaseChunkingStrategy]

STRATEGY_REGISTRY: dict[str, type[BaseChunkingStrategy]] = {
    "element-level": ElementLevelStrategy,
    "hierarchical": HierarchicalStrategy,
    "document-level": DocumentLevelStrategy,
}


class StrategyRegistry:
    """
    Name -> strategy factory mapping owned by one engine instance. Starts with the built-ins;
    registering a built-in name overrides it for this instance only.
    """

    def __init__(self):
        self._factories: dict[str, StrategyFactory] = dict(STRATEGY_REGISTRY)

    def register(self, name: str, factory: StrategyFactory, replace: bool = False) -> None:
        """Add a factory. Re-registering a non-built-in name requires replace=True."""
        if not name:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "Strategy name must not be empty")
        if name in self._factories and name not in STRATEGY_REGISTRY and not replace:
            raise ChunkerError(ErrorType.CONFIG_INVALID, "Strategy already registered", context={"strategy": name})
        self._factories[name] = factory
        logger.debug("Strategy registered", extra={"strategy": name})

    def register_custom(self, strategy: CustomStrategy, replace: bool = False) -> None:
        """Register a built custom strategy under its own name."""
        self.register(strategy.strategy_name, strategy.with_config, replace=replace)

    def unregister(self, name: str) -> bool:
        """Remove a factory. Returns False if the name was not registered."""
        return self._factories.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._factories

    def list_strategies(self) -> list[str]:
        return sorted(self._factories)

    def get(self, name: str, config: StrategyConfig | None = None) -> BaseChunkingStrategy:
        """Construct the named strategy. Raises StrategyNotFound for unknown names."""
        factory = self._factories.get(name)
        if factory is None:
            raise ChunkerError(
                ErrorType.STRATEGY_NOT_FOUND,
                "Unknown chunking strategy",
                context={"strategy": name, "available": ",".join(self.list_strategies())},
            )
        return factory(config)

    def describe(self) -> list[dict[str, str]]:
        """Name and description of every registered strategy, built with default config."""
        return [{"name": name, "description": self.get(name).description} for name in self.list_strategies()]

