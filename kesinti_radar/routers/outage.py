from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from kesinti_radar.config import Settings
from kesinti_radar.dependencies import (
    get_report_log,
    get_repository,
    get_settings,
    outage_list,
    unavailable,
)
from kesinti_radar.schemas.outage import Outage, OutageListResponse, ProviderType, ReportCreate, UserReport
from kesinti_radar.services.outage_filters import StatusFilter, filter_by_status, filter_by_type
from kesinti_radar.services.report_log import ReportLog
from kesinti_radar.services.repository import OutageRepository

router = APIRouter(tags=["outages"])


@router.get("/outages/", response_model=OutageListResponse)
async def list_outages(
    latitude: float | None = Query(None, ge=-90, le=90),
    longitude: float | None = Query(None, ge=-180, le=180),
    type: ProviderType | None = Query(None),
    status: StatusFilter | None = Query(None),
    repository: OutageRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Outages around a coordinate (the configured location by default), optionally filtered."""
    lat = latitude if latitude is not None else settings.default_latitude
    lon = longitude if longitude is not None else settings.default_longitude

    result = await repository.get_outages_for_current_location(lat, lon)
    if not result.ok:
        raise unavailable(result.error, settings.locale)

    outages = filter_by_status(filter_by_type(result.value, type), status)
    return outage_list(outages, settings.locale)


async def _require_outage(
    outage_id: UUID,
    repository: OutageRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> Outage:
    """Resolve ``outage_id`` against the outages the data source currently reports."""
    result = await repository.find_outage(outage_id, settings.default_latitude, settings.default_longitude)
    if not result.ok:
        raise unavailable(result.error, settings.locale)
    if result.value is None:
        raise HTTPException(status_code=404, detail=f"Outage {outage_id} not found")
    return result.value


@router.get("/outages/{outage_id}/reports", response_model=list[UserReport])
async def list_reports(
    outage: Outage = Depends(_require_outage),
    report_log: ReportLog = Depends(get_report_log),
):
    return report_log.reports_for(outage.id)


@router.post("/outages/{outage_id}/reports", response_model=UserReport, status_code=202)
async def create_report(
    body: ReportCreate,
    outage: Outage = Depends(_require_outage),
    report_log: ReportLog = Depends(get_report_log),
):
    """Record a user report locally and submit it in the background."""
    return report_log.add_report(
        outage.id,
        is_power_back=body.is_power_back,
        comment=body.comment,
        address_id=body.address_id,
    )
