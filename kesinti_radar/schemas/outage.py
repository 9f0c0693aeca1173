from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


class ProviderType(str, Enum):
    ELECTRICITY = "electricity"
    WATER = "water"
    NATURAL_GAS = "naturalGas"
    INTERNET = "internet"

    @property
    def display_name(self) -> str:
        return _PROVIDER_TYPE_NAMES[self]


_PROVIDER_TYPE_NAMES = {
    ProviderType.ELECTRICITY: "Elektrik",
    ProviderType.WATER: "Su",
    ProviderType.NATURAL_GAS: "Doğalgaz",
    ProviderType.INTERNET: "İnternet",
}


class OutageStatus(str, Enum):
    PLANNED = "planned"
    UNPLANNED = "unplanned"
    RESOLVED = "resolved"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    OutageStatus.PLANNED: "Planlı",
    OutageStatus.UNPLANNED: "Plansız",
    OutageStatus.RESOLVED: "Çözüldü",
}


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _now(now: datetime | None) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


class Provider(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    type: ProviderType
    service_regions: list[str] = []
    is_selected: bool = True


class Outage(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    provider: Provider
    type: ProviderType
    title: str
    description: str = ""
    status: OutageStatus
    start_date: datetime
    estimated_end_date: datetime | None = None
    affected_areas: list[str] = []
    latitude: float
    longitude: float
    user_reported_count: int = Field(default=0, ge=0)
    source_url: str | None = None

    @field_validator("start_date", "estimated_end_date")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @model_validator(mode="after")
    def _check_consistency(self) -> "Outage":
        if self.type != self.provider.type:
            raise ValueError(
                f"outage type {self.type.value} does not match provider type {self.provider.type.value}"
            )
        if self.estimated_end_date is not None and self.estimated_end_date < self.start_date:
            raise ValueError("estimated_end_date precedes start_date")
        return self

    def is_active(self, now: datetime | None = None) -> bool:
        """Started, not resolved and not yet past its estimated end."""
        now = _now(now)
        return (
            self.status != OutageStatus.RESOLVED
            and self.start_date <= now
            and (self.estimated_end_date is None or self.estimated_end_date > now)
        )

    def is_upcoming(self, now: datetime | None = None) -> bool:
        now = _now(now)
        return self.status != OutageStatus.RESOLVED and self.start_date > now

    def is_past(self, now: datetime | None = None) -> bool:
        # end == now counts as past so the three predicates cover every instant
        now = _now(now)
        return self.status == OutageStatus.RESOLVED or (
            self.estimated_end_date is not None and self.estimated_end_date <= now
        )


class UserReport(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    outage_id: UUID
    address_id: UUID | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    comment: str | None = None
    is_power_back: bool = False

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class Address(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    label: str
    full_text: str
    latitude: float
    longitude: float
    is_primary: bool = False


class ReportCreate(BaseModel):
    is_power_back: bool = False
    comment: str | None = None
    address_id: UUID | None = None


class AddressCreate(BaseModel):
    label: str
    full_text: str
    latitude: float
    longitude: float


class AddressUpdate(BaseModel):
    label: str | None = None
    full_text: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class AddressMove(BaseModel):
    indices: list[int]
    destination: int


class OutageListResponse(BaseModel):
    outages: list[Outage] = []
    message: str | None = None  # set when the result is empty


class ErrorResponse(BaseModel):
    code: str
    message: str
    retryable: bool = True
