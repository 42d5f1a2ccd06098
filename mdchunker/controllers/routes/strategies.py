"""GET /strategies: registered strategies and static.json profiles."""

from fastapi import APIRouter

from mdchunker.config.chunking.static import get_active_profile_name, load_chunker_profiles
from mdchunker.controllers.schema.chunk import StrategiesResponse, StrategyInfo
from mdchunker.services.chunking.strategies import StrategyRegistry

router = APIRouter(prefix="/strategies", tags=["chunking"])


@router.get("", response_model=StrategiesResponse)
async def list_strategies() -> StrategiesResponse:
    """Built-in strategies with their descriptions, plus the configured profiles."""
    registry = StrategyRegistry()
    return StrategiesResponse(
        active_profile=get_active_profile_name(),
        profiles=sorted(load_chunker_profiles()),
        strategies=[StrategyInfo(**entry) for entry in registry.describe()],
    )
