"""Environment-based application settings. Read-only; no business logic."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="mdchunker", description="Service name")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level name")

    # Server
    host: str = Field(default="0.0.0.0", description="Listen host")
    port: int = Field(default=8000, ge=1, le=65535, description="Listen port")

    # Chunking defaults (see config/chunking for per-profile semantics)
    chunking_profile: str = Field(default="active", description="Profile name from static.json, or 'active'")
    max_document_bytes: int = Field(
        default=100 * 1024 * 1024, ge=1, description="Documents above this size are rejected (MemoryExhausted)"
    )
    large_document_bytes: int = Field(
        default=10 * 1024 * 1024, ge=1, description="Documents above this size are logged as large"
    )

    # Batch processing
    max_batch_documents: int = Field(default=100, ge=1, le=1000, description="Max documents per batch request")
    chunk_workers: int = Field(default=4, ge=1, le=64, description="Worker threads for batch chunking")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Use for app lifetime."""
    return Settings()
