from pydantic import BaseModel

from kesinti_radar.schemas.outage import ProviderType


class DayCount(BaseModel):
    day: int  # calendar day of month
    count: int


class OutageStats(BaseModel):
    range_days: int
    type: ProviderType | None = None
    total: int = 0
    planned_count: int = 0
    unplanned_count: int = 0
    day_counts: list[DayCount] = []
    busiest_day: DayCount | None = None
    calmest_day: DayCount | None = None
