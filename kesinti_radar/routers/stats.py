from fastapi import APIRouter, Depends, HTTPException, Query

from kesinti_radar.config import Settings
from kesinti_radar.dependencies import display_tz, get_repository, get_settings, unavailable
from kesinti_radar.schemas.outage import ProviderType
from kesinti_radar.schemas.stats import OutageStats
from kesinti_radar.services.outage_filters import STATS_RANGES, summarize
from kesinti_radar.services.repository import OutageRepository

router = APIRouter(tags=["stats"])


@router.get("/stats/", response_model=OutageStats)
async def get_stats(
    range_days: int = Query(7),
    type: ProviderType | None = Query(None),
    repository: OutageRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Outage counts for the last 7 or 30 days around the configured location."""
    if range_days not in STATS_RANGES:
        raise HTTPException(status_code=422, detail=f"range_days must be one of {list(STATS_RANGES)}")

    result = await repository.get_outages_for_current_location(
        settings.default_latitude, settings.default_longitude
    )
    if not result.ok:
        raise unavailable(result.error, settings.locale)

    return summarize(result.value, range_days, type, tz=display_tz(settings))
