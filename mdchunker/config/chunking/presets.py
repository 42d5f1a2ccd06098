"""Factories for common strategy configs, plus merge and from-parameters helpers."""

from typing import Any

from mdchunker.config.chunking.models import StrategyConfig
from mdchunker.config.chunking.validation import validate_strategy_config
from mdchunker.services.chunking.errors import ChunkerError, ErrorType

_INT_FIELDS = ("max_depth", "min_depth", "min_chunk_size", "max_chunk_size")
_LIST_FIELDS = ("include_types", "exclude_types")


def element_level_config() -> StrategyConfig:
    return StrategyConfig(name="element-level")


def element_level_config_with_types(include_types: list[str]) -> StrategyConfig:
    return StrategyConfig(name="element-level", include_types=list(include_types))


def document_level_config() -> StrategyConfig:
    return StrategyConfig(name="document-level")


def hierarchical_config(max_depth: int) -> StrategyConfig:
    return StrategyConfig(name="hierarchical", max_depth=max_depth, merge_empty=True)


def hierarchical_config_with_size(max_depth: int, min_size: int, max_size: int) -> StrategyConfig:
    return StrategyConfig(
        name="hierarchical",
        max_depth=max_depth,
        merge_empty=True,
        min_chunk_size=min_size,
        max_chunk_size=max_size,
    )


def merge_strategy_configs(base: StrategyConfig, override: StrategyConfig | None) -> StrategyConfig:
    """
    Overlay explicitly set fields of `override` on `base`. Parameters are merged key by key.
    Names must match; a mismatch raises ConfigInvalid.
    """
    if override is None:
        return base.model_copy(deep=True)
    if base.name != override.name:
        raise ChunkerError(
            ErrorType.CONFIG_INVALID,
            "Cannot merge configs of different strategies",
            context={"base_name": base.name, "override_name": override.name},
        )
    updates = override.model_dump(exclude_unset=True)
    updates["parameters"] = {**base.parameters, **override.parameters}
    merged = base.model_copy(update=updates, deep=True)
    validate_strategy_config(merged)
    return merged


def strategy_config_from_parameters(name: str, params: dict[str, Any]) -> StrategyConfig:
    """
    Build a StrategyConfig from a flat parameter mapping. Known keys populate typed fields;
    every key is also kept in `parameters`. Wrongly typed known keys raise ConfigInvalid.
    """
    fields: dict[str, Any] = {"name": name, "parameters": dict(params)}
    for key in _INT_FIELDS:
        if key in params:
            value = params[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ChunkerError(ErrorType.CONFIG_INVALID, f"Parameter {key} must be an integer", context={key: value})
            fields[key] = value
    if "merge_empty" in params:
        if not isinstance(params["merge_empty"], bool):
            raise ChunkerError(ErrorType.CONFIG_INVALID, "Parameter merge_empty must be a boolean")
        fields["merge_empty"] = params["merge_empty"]
    for key in _LIST_FIELDS:
        if key in params:
            value = params[key]
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ChunkerError(ErrorType.CONFIG_INVALID, f"Parameter {key} must be a list of strings")
            fields[key] = list(value)
    config = StrategyConfig(**fields)
    validate_strategy_config(config)
    return config
