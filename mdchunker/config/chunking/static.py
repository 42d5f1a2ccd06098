"""Static chunker config loader. Read-only; no business logic."""

import json
from pathlib import Path
from typing import Any

from mdchunker.config.chunking.migration import migrate_config
from mdchunker.config.chunking.models import ChunkerConfig

_config_dir = Path(__file__).resolve().parent
_config_path = _config_dir / "static.json"

_cached: dict[str, ChunkerConfig] | None = None
_active_profile: str | None = None


def _load_raw_data() -> dict:
    """Load raw JSON; used to read both profiles and active."""
    raw = _config_path.read_text(encoding="utf-8")
    return json.loads(raw)


def load_chunker_profiles() -> dict[str, ChunkerConfig]:
    """Load chunker profiles from static.json. Keys are profile names."""
    global _cached
    if _cached is not None:
        return _cached
    data = _load_raw_data()
    profiles = data.get("profiles", {})
    _cached = {k: ChunkerConfig.model_validate(v) for k, v in profiles.items()}
    return _cached


def get_chunker_config(profile_name: str) -> ChunkerConfig | None:
    """Return chunker config for the given profile, or None if missing."""
    return load_chunker_profiles().get(profile_name)


def get_active_profile_name() -> str:
    """Return the profile name marked as active in static.json. Defaults to 'default' if missing."""
    global _active_profile
    if _active_profile is not None:
        return _active_profile
    data = _load_raw_data()
    _active_profile = data.get("active", "default")
    return _active_profile


def resolve_chunker_config(profile_name: str, inline_config: dict[str, Any] | None = None) -> ChunkerConfig:
    """
    Resolve chunker config by profile name or inline config.
    A non-empty inline_config goes through migrate_config, so legacy (v1) shapes are accepted.
    "active" means the profile marked as active in static.json.
    Raises ValueError for an unknown profile when no inline_config is given.
    """
    if inline_config:
        return migrate_config(inline_config).config
    if profile_name == "active":
        profile_name = get_active_profile_name()
    cfg = get_chunker_config(profile_name)
    if cfg is None:
        raise ValueError(f"Unknown chunker profile: {profile_name!r}")
    return cfg
