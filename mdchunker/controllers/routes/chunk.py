"""POST /chunk and POST /chunk/batch: chunk Markdown sent in the request body."""

import asyncio

from fastapi import APIRouter, HTTPException

from mdchunker.config.chunking.models import ChunkerConfig, StrategyConfig
from mdchunker.config.chunking.static import resolve_chunker_config
from mdchunker.config.logging import get_logger
from mdchunker.config.settings import get_settings
from mdchunker.controllers.schema.chunk import ChunkBatchRequest, ChunkBatchResponse, ChunkRequest, ChunkResponse
from mdchunker.services.chunking.chunker import ChunkingResult, MarkdownChunker
from mdchunker.services.chunking.errors import ChunkerError, ErrorType

logger = get_logger(__name__)

router = APIRouter(prefix="/chunk", tags=["chunking"])


def http_error(e: ChunkerError) -> HTTPException:
    """Unknown strategies are 404; every other chunker error is a client-side 422."""
    status_code = 404 if e.error_type == ErrorType.STRATEGY_NOT_FOUND else 422
    return HTTPException(status_code=status_code, detail=e.to_dict())


def _resolve_config(profile: str | None, inline_config: dict | None, strategy: str | None) -> ChunkerConfig:
    """Profile (settings.chunking_profile when omitted) or inline config, with an optional strategy override."""
    try:
        config = resolve_chunker_config(profile or get_settings().chunking_profile, inline_config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChunkerError as e:
        raise http_error(e) from e
    if strategy:
        current = config.chunking_strategy
        if current is None or current.name != strategy:
            config = config.model_copy(update={"chunking_strategy": StrategyConfig(name=strategy)})
    return config


def _new_chunker(config: ChunkerConfig) -> MarkdownChunker:
    try:
        return MarkdownChunker(config)
    except ChunkerError as e:
        raise http_error(e) from e


def _status(result: ChunkingResult) -> str:
    if result.error is None and not result.errors:
        return "success"
    return "partial" if result.chunks else "failed"


def _to_response(result: ChunkingResult) -> ChunkResponse:
    return ChunkResponse(
        strategy=result.strategy,
        total_chunks=len(result.chunks),
        chunks=result.chunks,
        status=_status(result),
        errors=[e.to_dict() for e in result.errors],
        stats=result.stats.to_dict(),
    )


def _chunk_one(config: ChunkerConfig, content: str) -> ChunkingResult:
    """Run in a worker thread. One engine per document; engines share no state."""
    return MarkdownChunker(config).chunk(content)


@router.post("", response_model=ChunkResponse)
async def chunk_document(body: ChunkRequest) -> ChunkResponse:
    """
    Chunk one Markdown document. Config comes from the named static.json profile, or from
    `chunking_config` when given. Constraint violations are reported in `errors`; a strict
    profile that aborts returns status "failed" with no chunks.
    """
    config = _resolve_config(body.profile, body.chunking_config, body.strategy)
    chunker = _new_chunker(config)
    result = await asyncio.to_thread(chunker.chunk, body.content)
    logger.info(
        "Document chunked",
        extra={"strategy": result.strategy, "chunks": len(result.chunks), "errors": len(result.errors)},
    )
    return _to_response(result)


@router.post("/batch", response_model=ChunkBatchResponse)
async def chunk_batch(body: ChunkBatchRequest) -> ChunkBatchResponse:
    """
    Chunk several documents with one shared config. Documents are processed in parallel,
    each by its own engine; results are returned in request order.
    """
    settings = get_settings()
    if len(body.documents) > settings.max_batch_documents:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_batch_documents} documents per batch",
        )
    config = _resolve_config(body.profile, body.chunking_config, body.strategy)
    # Fail fast on config or strategy errors before fanning out.
    _new_chunker(config)

    tasks = [asyncio.to_thread(_chunk_one, config, content) for content in body.documents]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    responses: list[ChunkResponse] = []
    chunked = 0
    failed = 0
    for result in results:
        if isinstance(result, Exception):
            logger.warning("Batch document failed", extra={"error": str(result)})
            failed += 1
            error = result if isinstance(result, ChunkerError) else ChunkerError(
                ErrorType.STRATEGY_EXECUTION_FAILED, "Chunking failed", cause=result
            )
            responses.append(
                ChunkResponse(strategy="", total_chunks=0, status="failed", errors=[error.to_dict()])
            )
            continue
        response = _to_response(result)
        if response.status == "failed":
            failed += 1
        else:
            chunked += 1
        responses.append(response)

    status = "success" if chunked else "failed"
    if failed and chunked:
        status = "partial"
    return ChunkBatchResponse(
        documents_chunked=chunked,
        documents_failed=failed,
        total_chunks_created=sum(r.total_chunks for r in responses),
        results=responses,
        status=status,
    )
