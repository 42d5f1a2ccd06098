"""Request/response schemas for POST /chunk and POST /chunk/batch."""

from typing import Any

from pydantic import BaseModel, Field

from mdchunker.services.chunking.models import Chunk


class ChunkRequest(BaseModel):
    """POST /chunk request body. One Markdown document; config from a static.json profile or inline."""

    content: str = Field(..., description="Markdown source")
    profile: str | None = Field(
        default=None, min_length=1, description="Profile name from static.json, or 'active'; defaults to settings.chunking_profile"
    )
    chunking_config: dict[str, Any] | None = Field(
        default=None,
        description="Optional inline ChunkerConfig (v1 or v2 shape); replaces the profile when given",
    )
    strategy: str | None = Field(default=None, min_length=1, description="Optional strategy name override")


class ChunkResponse(BaseModel):
    """POST /chunk response body."""

    strategy: str = Field(..., description="Strategy that produced the chunks")
    total_chunks: int = Field(..., ge=0)
    chunks: list[Chunk] = Field(default_factory=list)
    status: str = Field(..., description="success|partial|failed")
    errors: list[dict[str, Any]] = Field(default_factory=list, description="Errors recorded during this run")
    stats: dict[str, Any] = Field(default_factory=dict, description="Performance counters for this run")


class ChunkBatchRequest(BaseModel):
    """POST /chunk/batch request body. Documents share one config and are chunked in parallel."""

    documents: list[str] = Field(..., min_length=1, max_length=1000, description="Markdown sources (max 1000)")
    profile: str | None = Field(
        default=None, min_length=1, description="Profile name from static.json, or 'active'; defaults to settings.chunking_profile"
    )
    chunking_config: dict[str, Any] | None = Field(default=None, description="Optional inline ChunkerConfig")
    strategy: str | None = Field(default=None, min_length=1, description="Optional strategy name override")


class ChunkBatchResponse(BaseModel):
    """POST /chunk/batch response body. `results` is in request order."""

    documents_chunked: int = Field(..., ge=0, description="Documents that produced a result without a fatal error")
    documents_failed: int = Field(default=0, ge=0)
    total_chunks_created: int = Field(..., ge=0, description="Total chunks across all documents")
    results: list[ChunkResponse] = Field(default_factory=list)
    status: str = Field(..., description="success|partial|failed")


class StrategyInfo(BaseModel):
    """One entry of GET /strategies."""

    name: str
    description: str = ""


class StrategiesResponse(BaseModel):
    active_profile: str
    profiles: list[str] = Field(default_factory=list)
    strategies: list[StrategyInfo] = Field(default_factory=list)
