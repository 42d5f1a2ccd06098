"""Validation for chunker and strategy configs. Raises ChunkerError(ConfigInvalid)."""

from mdchunker.config.chunking.models import ChunkerConfig, StrategyConfig
from mdchunker.services.chunking.errors import ChunkerError, ErrorType
from mdchunker.services.chunking.nodes import ALL_NODE_KINDS

KNOWN_EXTRACTORS = frozenset({"links", "images", "code_complexity"})


def _invalid(message: str, **context) -> ChunkerError:
    return ChunkerError(ErrorType.CONFIG_INVALID, message, context=context)


def _check_types(field_name: str, types: list[str]) -> None:
    unknown = sorted(set(types) - ALL_NODE_KINDS)
    if unknown:
        raise _invalid(f"Unknown node kinds in {field_name}", field=field_name, invalid_types=",".join(unknown))


def validate_strategy_config(config: StrategyConfig) -> None:
    """Reject empty names, negative or inverted bounds, and unknown node kinds."""
    if not config.name:
        raise _invalid("Strategy name must not be empty")
    if config.max_depth < 0 or config.min_depth < 0:
        raise _invalid("Heading depth bounds must not be negative", max_depth=config.max_depth, min_depth=config.min_depth)
    if config.max_depth > 6:
        raise _invalid("max_depth must not exceed 6", max_depth=config.max_depth)
    if config.max_depth and config.min_depth > config.max_depth:
        raise _invalid("min_depth must not exceed max_depth", max_depth=config.max_depth, min_depth=config.min_depth)
    if config.min_chunk_size < 0 or config.max_chunk_size < 0:
        raise _invalid(
            "Chunk size bounds must not be negative",
            min_chunk_size=config.min_chunk_size,
            max_chunk_size=config.max_chunk_size,
        )
    if config.max_chunk_size and config.min_chunk_size > config.max_chunk_size:
        raise _invalid(
            "min_chunk_size must not exceed max_chunk_size",
            min_chunk_size=config.min_chunk_size,
            max_chunk_size=config.max_chunk_size,
        )
    _check_types("include_types", config.include_types)
    _check_types("exclude_types", config.exclude_types)


def validate_chunker_config(config: ChunkerConfig) -> None:
    """Reject negative limits, unknown node kinds or extractor names, and an invalid strategy config."""
    if config.max_chunk_size < 0:
        raise _invalid("max_chunk_size must not be negative", max_chunk_size=config.max_chunk_size)
    if config.memory_limit < 0:
        raise _invalid("memory_limit must not be negative", memory_limit=config.memory_limit)
    if config.enabled_types is not None:
        _check_types("enabled_types", config.enabled_types)
    unknown = sorted(set(config.extractors) - KNOWN_EXTRACTORS)
    if unknown:
        raise _invalid("Unknown extractors", invalid_extractors=",".join(unknown))
    if config.chunking_strategy is not None:
        validate_strategy_config(config.chunking_strategy)
