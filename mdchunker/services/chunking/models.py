"""Chunk records produced by the engine. Immutable once emitted."""

from pydantic import BaseModel, ConfigDict, Field

from mdchunker.services.chunking.nodes import SourceSpan


class ChunkPosition(BaseModel):
    """1-based span covering every node that contributed to a chunk."""

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(..., ge=0)
    start_col: int = Field(..., ge=0)
    end_line: int = Field(..., ge=0)
    end_col: int = Field(..., ge=0)

    @classmethod
    def from_span(cls, span: SourceSpan) -> "ChunkPosition":
        return cls(
            start_line=span.start_line,
            start_col=span.start_col,
            end_line=span.end_line,
            end_col=max(span.end_col, 0),
        )


class Link(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    url: str
    type: str = Field(..., description="anchor|external|internal")


class Image(BaseModel):
    model_config = ConfigDict(frozen=True)

    alt: str
    url: str
    title: str = ""


class Chunk(BaseModel):
    """A finalized unit of output. `hash` is the SHA-256 of `content`."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    type: str = Field(..., description="Node kind or a strategy label such as 'document' or 'preamble'")
    level: int = Field(default=0, ge=0, le=6)
    content: str
    text: str
    position: ChunkPosition
    hash: str
    metadata: dict[str, str] = Field(default_factory=dict)
    links: tuple[Link, ...] = ()
    images: tuple[Image, ...] = ()
