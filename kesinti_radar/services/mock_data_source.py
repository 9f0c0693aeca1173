"""In-memory outage data source seeded with Izmir sample data.

Every call sleeps for ``latency`` seconds and then fails with
``NoConnectionError`` with probability ``failure_probability``, so callers
exercise their error paths routinely.
"""

import asyncio
import logging
import random
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from kesinti_radar.errors import NoConnectionError
from kesinti_radar.schemas.outage import (
    Address,
    Outage,
    OutageStatus,
    Provider,
    ProviderType,
    UserReport,
)
from kesinti_radar.services.data_source import OutageDataSource

logger = logging.getLogger(__name__)


def seed_providers() -> list[Provider]:
    return [
        Provider(name="Gediz Elektrik", type=ProviderType.ELECTRICITY,
                 service_regions=["İzmir", "Manisa"], is_selected=True),
        Provider(name="İZSU", type=ProviderType.WATER,
                 service_regions=["İzmir"], is_selected=True),
        Provider(name="İZGAZ", type=ProviderType.NATURAL_GAS,
                 service_regions=["İzmit", "İzmir"], is_selected=False),
        Provider(name="SüperNet", type=ProviderType.INTERNET,
                 service_regions=["İzmir", "Ankara"], is_selected=True),
    ]


def seed_outages(providers: list[Provider], now: datetime) -> list[Outage]:
    """Four outages relative to ``now``: planned, active, resolved, planned tomorrow."""
    by_type = {p.type: p for p in providers}
    electricity = by_type[ProviderType.ELECTRICITY]
    water = by_type[ProviderType.WATER]
    gas = by_type[ProviderType.NATURAL_GAS]
    internet = by_type[ProviderType.INTERNET]

    return [
        Outage(
            provider=electricity.model_copy(deep=True),
            type=electricity.type,
            title="Karabağlar bakım çalışması",
            description="Planlı bakım sebebiyle Karabağlar ilçesinin bazı mahallelerinde elektrik kesintisi yaşanacak.",
            status=OutageStatus.PLANNED,
            start_date=now + timedelta(hours=1),
            estimated_end_date=now + timedelta(hours=4),
            affected_areas=["Bozyaka", "Bahçelievler"],
            latitude=38.384,
            longitude=27.128,
            user_reported_count=12,
            source_url="https://gediz.com.tr",
        ),
        Outage(
            provider=water.model_copy(deep=True),
            type=water.type,
            title="Konak acil arıza",
            description="Ana hat arızası nedeniyle su kesintisi yaşanıyor. Ekipler müdahale ediyor.",
            status=OutageStatus.UNPLANNED,
            start_date=now - timedelta(minutes=45),
            estimated_end_date=now + timedelta(hours=2),
            affected_areas=["Alsancak", "Kordon", "Güzelyalı"],
            latitude=38.432,
            longitude=27.140,
            user_reported_count=34,
            source_url="https://izsu.gov.tr",
        ),
        Outage(
            provider=internet.model_copy(deep=True),
            type=internet.type,
            title="Bornova modem kesintisi",
            description="Bölgesel modem kaynaklı kesinti. İnternet erişimi yavaş veya kesik olabilir.",
            status=OutageStatus.RESOLVED,
            start_date=now - timedelta(days=1),
            estimated_end_date=now - timedelta(hours=12),
            affected_areas=["Bornova", "Evka 3"],
            latitude=38.459,
            longitude=27.222,
            user_reported_count=6,
            source_url="https://supernet.com",
        ),
        Outage(
            provider=gas.model_copy(deep=True),
            type=gas.type,
            title="Buca vana değişimi",
            description="Planlı vana değişim çalışması yapılacaktır.",
            status=OutageStatus.PLANNED,
            start_date=now + timedelta(days=1),
            estimated_end_date=now + timedelta(days=1, hours=2),
            affected_areas=["Şirinyer", "Kaynaklar"],
            latitude=38.388,
            longitude=27.174,
            user_reported_count=0,
            source_url="https://izgaz.com",
        ),
    ]


class MockOutageDataSource(OutageDataSource):
    name = "mock"

    def __init__(
        self,
        now: datetime | None = None,
        latency: float = 0.45,
        failure_probability: float = 0.25,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        seeded_at = now or self._clock()
        self._providers = seed_providers()
        self._outages = seed_outages(self._providers, seeded_at)
        self._latency = latency
        self._failure_probability = failure_probability
        self._rng = rng or random.Random()
        self.received_reports: list[UserReport] = []

    async def _simulate_delay(self, operation: str):
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        if self._rng.random() < self._failure_probability:
            logger.debug("Mock data source: injected failure in %s", operation)
            raise NoConnectionError(f"simulated connection loss in {operation}")

    async def fetch_providers(self) -> list[Provider]:
        await self._simulate_delay("fetch_providers")
        return [p.model_copy(deep=True) for p in self._providers]

    async def fetch_outages_around(self, latitude: float, longitude: float) -> list[Outage]:
        # No proximity filter: the whole seed set is "nearby"
        await self._simulate_delay("fetch_outages_around")
        return [o.model_copy(deep=True) for o in self._outages]

    async def fetch_outages_for_address(self, address: Address) -> list[Outage]:
        await self._simulate_delay("fetch_outages_for_address")
        return [o.model_copy(deep=True) for o in self._outages]

    async def fetch_outage_history(self, address: Address) -> list[Outage]:
        await self._simulate_delay("fetch_outage_history")
        now = self._clock()
        return [o.model_copy(deep=True) for o in self._outages if o.is_past(now)]

    async def send_user_report(self, report: UserReport) -> None:
        await self._simulate_delay("send_user_report")
        self.received_reports.append(report)
