from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "KESINTI_"}

    # Database (key-value blob store for saved addresses)
    database_url: str = Field(default="sqlite:///./kesinti_radar.db")

    # Outage data source: "mock" (seeded, in-memory) or "http"
    data_source: str = Field(default="mock", pattern="^(mock|http)$")

    # HTTP data source
    outage_api_url: str = Field(default="http://localhost:8080/api")
    http_timeout_seconds: float = Field(default=15.0)
    outage_search_radius_km: float = Field(default=25.0)

    # Mock fault injection
    mock_latency_seconds: float = Field(default=0.45)
    mock_failure_probability: float = Field(default=0.25, ge=0.0, le=1.0)

    # Repository behaviour. A zero timeout disables it.
    fetch_timeout_seconds: float = Field(default=10.0)
    initial_load_retries: int = Field(default=2)
    retry_backoff_seconds: float = Field(default=0.5)

    # Device location stand-in (Izmir city centre)
    default_latitude: float = Field(default=38.4237)
    default_longitude: float = Field(default=27.1428)

    # Reminders for upcoming outages
    reminder_lead_minutes: int = Field(default=30)
    reminder_types: str = Field(default="electricity,water,naturalGas,internet")

    # Calendar used to group outages by day in statistics
    display_timezone: str = Field(default="UTC")

    # User-facing error messages: tr or en
    locale: str = Field(default="tr")

    # CORS
    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def reminder_type_list(self) -> list[str]:
        return [t.strip() for t in self.reminder_types.split(",") if t.strip()]


settings = Settings()
