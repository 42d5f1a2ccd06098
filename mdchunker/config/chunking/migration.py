"""
Config migration: translates legacy (v1) and strategy-less v2 configs into the current shape.
Pure translation; no chunking logic.
"""

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from mdchunker.config.chunking.models import CONFIG_VERSION, ChunkerConfig, StrategyConfig
from mdchunker.config.chunking.presets import element_level_config, element_level_config_with_types
from mdchunker.config.chunking.validation import validate_chunker_config
from mdchunker.config.logging import get_logger
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import ALL_NODE_KINDS

logger = get_logger(__name__)

LEGACY_VERSION = "v1"

# Legacy keys that map onto ChunkerConfig fields one to one.
_LEGACY_FIELDS = ("max_chunk_size", "error_handling", "filter_empty_chunks", "preserve_whitespace", "memory_limit")


class MigrationResult(BaseModel):
    """Migrated config plus what changed on the way."""

    config: ChunkerConfig
    migrated: bool = False
    original_version: str = ""
    target_version: str = CONFIG_VERSION
    warnings: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @property
    def strategy_config(self) -> StrategyConfig:
        return self.config.chunking_strategy or element_level_config()


def is_legacy_config(value: dict[str, Any]) -> bool:
    """A config without a chunking_strategy key predates strategies."""
    return "chunking_strategy" not in value


def get_config_version(value: dict[str, Any]) -> str:
    """Explicit `version` if present, otherwise inferred from the shape."""
    if value.get("version"):
        return str(value["version"])
    return LEGACY_VERSION if is_legacy_config(value) else CONFIG_VERSION


def _invalid(message: str, cause: Exception | None = None) -> ChunkerError:
    return ChunkerError(ErrorType.CONFIG_INVALID, message, cause=cause, context={"function": "migrate_config"})


def _validated(config: ChunkerConfig) -> ChunkerConfig:
    try:
        validate_chunker_config(config)
    except ChunkerError as e:
        raise _invalid("Migrated config failed validation", cause=e) from e
    return config


def _migrate_v2(config: ChunkerConfig) -> MigrationResult:
    result = MigrationResult(config=config, original_version=CONFIG_VERSION)
    if config.chunking_strategy is None:
        result.config = config.model_copy(update={"chunking_strategy": element_level_config()})
        result.migrated = True
        result.warnings.append("Missing chunking strategy; added default element-level strategy")
        result.notes.append("Element-level keeps the pre-strategy chunking behavior")
    result.config = _validated(result.config)
    return result


def _migrate_legacy(value: dict[str, Any]) -> MigrationResult:
    result = MigrationResult(config=ChunkerConfig(), migrated=True, original_version=LEGACY_VERSION)
    fields: dict[str, Any] = {k: value[k] for k in _LEGACY_FIELDS if k in value}
    strategy = element_level_config()

    enabled = value.get("enabled_types") or {}
    if isinstance(enabled, dict):
        enabled_kinds = sorted(kind for kind, on in enabled.items() if on)
    else:
        enabled_kinds = sorted(enabled)
    if enabled_kinds and len(enabled_kinds) < len(ALL_NODE_KINDS):
        fields["enabled_types"] = enabled_kinds
        strategy = element_level_config_with_types(enabled_kinds)
        result.notes.append("Converted legacy type filter into strategy include_types")

    max_size = value.get("max_chunk_size") or 0
    if max_size > 0:
        strategy.max_chunk_size = max_size
        strategy.parameters["max_chunk_size"] = max_size
        result.notes.append("Converted legacy size limit into strategy max_chunk_size")

    dropped = sorted(set(value) - set(_LEGACY_FIELDS) - {"enabled_types", "version"})
    if dropped:
        result.warnings.append(f"Ignored legacy fields: {', '.join(dropped)}")

    try:
        config = ChunkerConfig(**fields, chunking_strategy=strategy)
    except ValidationError as e:
        raise _invalid("Legacy config has invalid values", cause=e) from e
    result.config = _validated(config)
    result.notes.append("Migrated v1 config to v2 with unchanged chunking behavior")
    return result


def _migrate_mapping(value: dict[str, Any]) -> MigrationResult:
    if is_legacy_config(value):
        return _migrate_legacy(value)
    try:
        config = ChunkerConfig.model_validate({k: v for k, v in value.items() if k != "version"})
    except ValidationError as e:
        raise _invalid("Config has invalid values", cause=e) from e
    return _migrate_v2(config)


def migrate_config(value: ChunkerConfig | dict[str, Any] | str | bytes | None) -> MigrationResult:
    """
    Migrate a config value to the current version. Accepts None (defaults), a ChunkerConfig,
    a mapping, or JSON text/bytes. Raises ChunkerError(ConfigInvalid) for unreadable input.
    """
    if value is None:
        result = MigrationResult(
            config=ChunkerConfig(chunking_strategy=element_level_config()),
            migrated=True,
            warnings=["Config was empty; using defaults"],
            notes=["Created default element-level strategy config"],
        )
    elif isinstance(value, ChunkerConfig):
        result = _migrate_v2(value)
    elif isinstance(value, dict):
        result = _migrate_mapping(value)
    elif isinstance(value, (str, bytes)):
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise _invalid("Config JSON could not be parsed", cause=e) from e
        if not isinstance(parsed, dict):
            raise _invalid("Config JSON must be an object")
        result = _migrate_mapping(parsed)
    else:
        raise _invalid(f"Unsupported config type: {type(value).__name__}")

    if result.migrated:
        logger.info(
            "Config migrated",
            extra={"original_version": result.original_version, "target_version": result.target_version},
        )
    for warning in result.warnings:
        logger.warning("Config migration warning", extra={"warning": warning})
    return result
