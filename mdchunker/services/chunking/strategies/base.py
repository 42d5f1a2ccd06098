"""Base chunking strategy and contract."""

from abc import ABC, abstractmethod

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.config.chunking.validation import validate_strategy_config
from mdchunker.services.chunking.assembler import ChunkAssembler
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import Document


class BaseChunkingStrategy(ABC):
    """
    Abstract chunking strategy. A strategy walks the document and drives the assembler;
    it never finalizes the run itself (the engine calls assembler.finish()).
    Instances hold only immutable configuration, so one instance can serve many runs.
    """

    def __init__(self, config: StrategyConfig | None = None):
        config = config or StrategyConfig(name=self.strategy_name)
        self.validate_config(config)
        self.config = config

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Registry name, e.g. 'element-level', 'hierarchical'."""
        ...

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    def chunk(self, document: Document, assembler: ChunkAssembler) -> None:
        """Walk the document and open, extend and finalize chunks through the assembler."""
        ...

    def validate_config(self, config: StrategyConfig) -> None:
        """Generic bounds/type checks. Subclasses add strategy-specific rules."""
        validate_strategy_config(config)

    def _reject(self, message: str, **context) -> None:
        raise ChunkerError(
            ErrorType.STRATEGY_CONFIG_INVALID,
            message,
            context={"strategy": self.strategy_name, **context},
        )
