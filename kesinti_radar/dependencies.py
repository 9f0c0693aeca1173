"""FastAPI dependencies: services built in ``create_app`` and kept on ``app.state``."""

from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from fastapi import HTTPException, Request

from kesinti_radar.config import Settings
from kesinti_radar.errors import EmptyResultError, OutageDataError
from kesinti_radar.schemas.outage import Outage, OutageListResponse
from kesinti_radar.services.address_book import AddressBook
from kesinti_radar.services.report_log import ReportLog
from kesinti_radar.services.repository import OutageRepository
from kesinti_radar.tasks.scheduler import ReminderScheduler


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> OutageRepository:
    return request.app.state.repository


def get_address_book(request: Request) -> AddressBook:
    return request.app.state.address_book


def get_report_log(request: Request) -> ReportLog:
    return request.app.state.report_log


def get_reminders(request: Request) -> ReminderScheduler:
    return request.app.state.reminders


def display_tz(settings: Settings) -> tzinfo:
    if settings.display_timezone.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(settings.display_timezone)


def unavailable(error: OutageDataError, locale: str) -> HTTPException:
    """503 carrying a localized message so clients can offer a retry."""
    return HTTPException(
        status_code=503,
        detail={
            "code": error.code,
            "message": error.localized(locale),
            "retryable": error.retryable,
        },
    )


def outage_list(outages: list[Outage], locale: str) -> OutageListResponse:
    if not outages:
        return OutageListResponse(outages=[], message=EmptyResultError().localized(locale))
    return OutageListResponse(outages=outages)
