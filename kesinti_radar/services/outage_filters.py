"""Pure filters and aggregations over outage snapshots."""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum

from kesinti_radar.schemas.outage import Outage, OutageStatus, ProviderType
from kesinti_radar.schemas.stats import DayCount, OutageStats

STATS_RANGES = (7, 30)


class StatusFilter(str, Enum):
    PLANNED = "planned"  # planned, or any not-yet-started outage
    UNPLANNED = "unplanned"  # unplanned and active right now
    RESOLVED = "resolved"  # resolved or past its end


def filter_by_type(outages: Iterable[Outage], provider_type: ProviderType | None) -> list[Outage]:
    if provider_type is None:
        return list(outages)
    return [o for o in outages if o.type == provider_type]


def filter_by_status(
    outages: Iterable[Outage],
    status_filter: StatusFilter | None,
    now: datetime | None = None,
) -> list[Outage]:
    if status_filter is None:
        return list(outages)
    now = now or datetime.now(timezone.utc)
    if status_filter == StatusFilter.PLANNED:
        return [o for o in outages if o.status == OutageStatus.PLANNED or o.is_upcoming(now)]
    if status_filter == StatusFilter.UNPLANNED:
        return [o for o in outages if o.status == OutageStatus.UNPLANNED and o.is_active(now)]
    return [o for o in outages if o.is_past(now)]


def filter_by_date_range(
    outages: Iterable[Outage],
    days: int,
    provider_type: ProviderType | None = None,
    now: datetime | None = None,
) -> list[Outage]:
    """Outages that started within the last ``days`` days, optionally of one type."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days)
    return filter_by_type((o for o in outages if o.start_date >= since), provider_type)


def group_by_day(outages: Iterable[Outage], tz: tzinfo = timezone.utc) -> dict[int, list[Outage]]:
    """Group by calendar day of month, keys ascending."""
    groups: dict[int, list[Outage]] = {}
    for o in outages:
        groups.setdefault(o.start_date.astimezone(tz).day, []).append(o)
    return {day: groups[day] for day in sorted(groups)}


def busiest_day(groups: dict[int, list[Outage]]) -> DayCount | None:
    """Day with the most outages; ties go to the earliest day."""
    if not groups:
        return None
    day = min(groups, key=lambda d: (-len(groups[d]), d))
    return DayCount(day=day, count=len(groups[day]))


def calmest_day(groups: dict[int, list[Outage]]) -> DayCount | None:
    """Day with the fewest outages; ties go to the earliest day."""
    if not groups:
        return None
    day = min(groups, key=lambda d: (len(groups[d]), d))
    return DayCount(day=day, count=len(groups[day]))


def summarize(
    outages: Iterable[Outage],
    days: int,
    provider_type: ProviderType | None = None,
    now: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> OutageStats:
    filtered = filter_by_date_range(outages, days, provider_type, now)
    groups = group_by_day(filtered, tz)
    return OutageStats(
        range_days=days,
        type=provider_type,
        total=len(filtered),
        planned_count=sum(1 for o in filtered if o.status == OutageStatus.PLANNED),
        unplanned_count=sum(1 for o in filtered if o.status == OutageStatus.UNPLANNED),
        day_counts=[DayCount(day=d, count=len(items)) for d, items in groups.items()],
        busiest_day=busiest_day(groups),
        calmest_day=calmest_day(groups),
    )
