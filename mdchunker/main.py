"""FastAPI app entry: config, logging, health, and error handling."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mdchunker.config.chunking.static import get_active_profile_name, load_chunker_profiles
from mdchunker.config.logging import configure_logging, get_logger
from mdchunker.config.settings import get_settings
from mdchunker.controllers.routes.chunk import http_error
from mdchunker.controllers.routes.chunk import router as chunk_router
from mdchunker.controllers.routes.strategies import router as strategies_router
from mdchunker.services.chunking.errors import ChunkerError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: config, logging, and profile loading. A broken static.json fails startup."""
    settings = get_settings()
    configure_logging()
    logger.info("Application starting", extra={"app_name": settings.app_name, "environment": settings.environment})
    profiles = load_chunker_profiles()
    logger.info(
        "Chunker profiles loaded",
        extra={"profiles": sorted(profiles), "active_profile": get_active_profile_name()},
    )
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Markdown Chunker",
    description="Split Markdown documents into structured chunks",
    version="1.0.0",
    lifespan=lifespan,
)
app.include_router(chunk_router)
app.include_router(strategies_router)


@app.get("/health")
async def health() -> dict[str, Any]:
    """Liveness: service is up."""
    return {"status": "ok"}


@app.exception_handler(ChunkerError)
async def chunker_error_handler(_request: Request, exc: ChunkerError):
    """Chunker errors that escape a route are caller errors, not server faults."""
    error = http_error(exc)
    logger.warning("Chunker error", extra={"error_type": exc.error_type.value, "error": exc.message})
    return JSONResponse(content={"detail": error.detail}, status_code=error.status_code)


@app.exception_handler(Exception)
async def global_exception_handler(_request: Request, exc: Exception):
    """Centralized error handling: do not leak stack traces or internal details to the client."""
    logger.exception("Unhandled error", extra={"error": type(exc).__name__})
    return JSONResponse(
        content={"detail": "An internal error occurred."},
        status_code=500,
    )
