import asyncio
import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from kesinti_radar.schemas.outage import UserReport
from kesinti_radar.services.repository import OutageRepository

logger = logging.getLogger(__name__)


def sample_reports(outage_id: UUID, now: datetime | None = None) -> list[UserReport]:
    now = now or datetime.now(timezone.utc)
    return [
        UserReport(outage_id=outage_id, timestamp=now - timedelta(minutes=10),
                   comment="Bizde de kesildi", is_power_back=False),
        UserReport(outage_id=outage_id, timestamp=now - timedelta(minutes=20),
                   comment="Su zayıf akıyor", is_power_back=False),
    ]


class ReportLog:
    """User reports per outage, kept in memory for the life of the process.

    New reports are appended locally right away and sent to the repository
    in the background; send failures never reach the caller.
    """

    def __init__(self, repository: OutageRepository):
        self._repository = repository
        self._reports: dict[UUID, list[UserReport]] = {}
        self._pending: set[asyncio.Task] = set()

    def reports_for(self, outage_id: UUID) -> list[UserReport]:
        """Stored reports, or the sample reports when nobody has reported yet."""
        reports = self._reports.get(outage_id)
        if reports is None:
            return sample_reports(outage_id)
        return list(reports)

    def add_report(
        self,
        outage_id: UUID,
        is_power_back: bool,
        comment: str | None = None,
        address_id: UUID | None = None,
    ) -> UserReport:
        report = UserReport(
            outage_id=outage_id,
            address_id=address_id,
            comment=comment,
            is_power_back=is_power_back,
        )
        self._reports.setdefault(outage_id, sample_reports(outage_id)).append(report)

        task = asyncio.ensure_future(self._repository.send(report))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logger.info("Report %s queued for outage %s", report.id, outage_id)
        return report

    async def drain(self):
        """Wait for in-flight report submissions."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
