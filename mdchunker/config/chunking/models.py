"""Chunking configuration models. Read-only; no business logic."""

from typing import Any

from pydantic import BaseModel, Field

from mdchunker.services.chunking.errors import ErrorHandlingMode

CONFIG_VERSION = "v2"


class StrategyConfig(BaseModel):
    """Strategy name plus strategy-specific parameters. Checked by validation.validate_strategy_config."""

    name: str = Field(default="element-level", description="element-level|hierarchical|document-level|<custom>")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Free-form strategy parameters")
    max_depth: int = Field(default=0, description="Deepest heading level that opens a chunk (hierarchical); 0 = 6")
    min_depth: int = Field(default=0, description="Shallowest heading level that opens a chunk (hierarchical)")
    merge_empty: bool = Field(default=False, description="Merge chunks below min_chunk_size forward")
    min_chunk_size: int = Field(default=0, description="Minimum chunk content length; 0 = no minimum")
    max_chunk_size: int = Field(default=0, description="Maximum chunk content length; 0 = engine default")
    include_types: list[str] = Field(default_factory=list, description="Node kinds considered; empty = all")
    exclude_types: list[str] = Field(default_factory=list, description="Node kinds never considered")


class ChunkerConfig(BaseModel):
    """Engine configuration. Checked by validation.validate_chunker_config."""

    chunking_strategy: StrategyConfig | None = Field(default=None, description="None = element-level")
    max_chunk_size: int = Field(default=0, description="Maximum chunk content length; 0 = unlimited")
    enabled_types: list[str] | None = Field(default=None, description="Node kinds ever emitted; None = all")
    filter_empty_chunks: bool = Field(default=True)
    preserve_whitespace: bool = Field(default=False)
    error_handling: ErrorHandlingMode = Field(default=ErrorHandlingMode.PERMISSIVE)
    memory_limit: int = Field(default=0, description="Source byte budget; 0 = unlimited")
    extractors: list[str] = Field(default_factory=list, description="links|images|code_complexity")
