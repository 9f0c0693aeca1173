from fastapi import APIRouter, Depends

from kesinti_radar.config import Settings
from kesinti_radar.dependencies import get_repository, get_settings, unavailable
from kesinti_radar.errors import NoConnectionError
from kesinti_radar.schemas.outage import Provider
from kesinti_radar.services.repository import OutageRepository

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("/", response_model=list[Provider])
async def list_providers(repository: OutageRepository = Depends(get_repository)):
    """Providers published by the last successful load."""
    return repository.providers


@router.post("/refresh", response_model=list[Provider])
async def refresh_providers(
    repository: OutageRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Manual retry of the initial provider load."""
    if not await repository.load_initial_data():
        raise unavailable(NoConnectionError(), settings.locale)
    return repository.providers
