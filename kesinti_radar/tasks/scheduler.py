"""APScheduler setup for reminders ahead of upcoming outages."""

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from kesinti_radar.schemas.outage import Outage, ProviderType

logger = logging.getLogger(__name__)


def reminder_time(
    outage: Outage,
    now: datetime | None = None,
    lead: timedelta = timedelta(minutes=30),
) -> datetime | None:
    """When to remind about ``outage``, or None if it is not upcoming or too close."""
    now = now or datetime.now(timezone.utc)
    if not outage.is_upcoming(now):
        return None
    run_at = outage.start_date - lead
    if run_at <= now:
        return None
    return run_at


def _send_reminder(title: str, provider_name: str, start_date: datetime):
    # Delivery to devices happens elsewhere; here the reminder is only logged.
    logger.info("Yaklaşan kesinti: %s. %s %s'de başlayacak.",
                title, provider_name, start_date.strftime("%H:%M"))


class ReminderScheduler:
    def __init__(
        self,
        scheduler: BackgroundScheduler | None = None,
        lead_minutes: int = 30,
        enabled_types: list[str] | None = None,
    ):
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._lead = timedelta(minutes=lead_minutes)
        if enabled_types is None:
            self._enabled = set(ProviderType)
        else:
            self._enabled = {ProviderType(t) for t in enabled_types}

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self):
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Reminder scheduler started (lead %s)", self._lead)

    def shutdown(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")

    def schedule(self, outage: Outage, now: datetime | None = None) -> datetime | None:
        """Add a one-shot reminder job; returns its run time or None if skipped."""
        if outage.type not in self._enabled:
            logger.debug("Reminders disabled for %s, skipping %s", outage.type.value, outage.id)
            return None
        run_at = reminder_time(outage, now, self._lead)
        if run_at is None:
            return None

        job_id = str(outage.id)
        if self._scheduler.get_job(job_id):
            self._scheduler.remove_job(job_id)
        self._scheduler.add_job(
            _send_reminder,
            "date",
            run_date=run_at,
            args=[outage.title, outage.provider.name, outage.start_date],
            id=job_id,
            name=f"Reminder: {outage.title}",
        )
        logger.info("Reminder for %s scheduled at %s", outage.id, run_at.isoformat())
        return run_at

    def pending(self) -> list[dict]:
        return [
            {"id": job.id, "name": job.name, "run_at": job.trigger.run_date}
            for job in self._scheduler.get_jobs()
        ]

    def cancel_all(self):
        self._scheduler.remove_all_jobs()
        logger.info("All pending reminders cancelled")
