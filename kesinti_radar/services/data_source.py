"""Outage data source interface and factory."""

from abc import ABC, abstractmethod

from kesinti_radar.config import Settings
from kesinti_radar.schemas.outage import Address, Outage, Provider, UserReport


class OutageDataSource(ABC):
    """Supplies providers, outages and outage history.

    Implementations raise ``OutageDataError`` subclasses on failure; the
    repository is responsible for turning those into results.
    """

    name = "base"

    @abstractmethod
    async def fetch_providers(self) -> list[Provider]:
        """All known providers."""

    @abstractmethod
    async def fetch_outages_around(self, latitude: float, longitude: float) -> list[Outage]:
        """Outages near a coordinate."""

    @abstractmethod
    async def fetch_outages_for_address(self, address: Address) -> list[Outage]:
        """Outages affecting a saved address."""

    @abstractmethod
    async def fetch_outage_history(self, address: Address) -> list[Outage]:
        """Past outages for a saved address."""

    @abstractmethod
    async def send_user_report(self, report: UserReport) -> None:
        """Submit a user report. No payload on success."""


def build_data_source(settings: Settings) -> OutageDataSource:
    """Pick the data source variant named by ``settings.data_source``."""
    if settings.data_source == "http":
        from kesinti_radar.services.http_data_source import HttpOutageDataSource
        return HttpOutageDataSource(
            base_url=settings.outage_api_url,
            timeout=settings.http_timeout_seconds,
            radius_km=settings.outage_search_radius_km,
        )

    from kesinti_radar.services.mock_data_source import MockOutageDataSource
    return MockOutageDataSource(
        latency=settings.mock_latency_seconds,
        failure_probability=settings.mock_failure_probability,
    )
