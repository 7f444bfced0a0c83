"""Alert engine configuration.

``ThresholdConfig`` holds one numeric limit per metric dimension and reads
its defaults from the ``*_ALERT_THRESHOLD`` environment variables.
``AlertConfig`` controls history capacity and dispatch mode, overridable
via ``ALERTS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fixed windows (seconds).
DEDUP_WINDOW_SECONDS = 5 * 60
ACTIVE_RETENTION_SECONDS = 24 * 60 * 60


class ThresholdConfig(BaseSettings):
    """Per-dimension alert thresholds.

    Values are not range-checked; a threshold of zero or below makes
    severity classification undefined.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    cpu: float = Field(
        default=80.0,
        validation_alias="CPU_ALERT_THRESHOLD",
        description="CPU usage percent",
    )
    memory: float = Field(
        default=85.0,
        validation_alias="MEMORY_ALERT_THRESHOLD",
        description="Memory usage percent",
    )
    disk: float = Field(
        default=90.0,
        validation_alias="DISK_ALERT_THRESHOLD",
        description="Disk usage percent",
    )
    response_time: float = Field(
        default=2000.0,
        validation_alias="RESPONSE_TIME_ALERT_THRESHOLD",
        description="Average API response time in milliseconds",
    )
    error_rate: float = Field(
        default=5.0,
        validation_alias="ERROR_RATE_ALERT_THRESHOLD",
        description="Request error rate percent",
    )
    database: float = Field(
        default=80.0,
        validation_alias="DB_CONNECTION_ALERT_THRESHOLD",
        description="Database connection pool usage percent",
    )


class AlertConfig(BaseSettings):
    """Configuration for the alert engine."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        case_sensitive=False,
        extra="ignore",
    )

    max_history_size: int = Field(
        default=1000,
        ge=1,
        description="Capacity of the alert history ring buffer",
    )
    background_dispatch: bool = Field(
        default=False,
        description="Dispatch notifications as background tasks instead of awaiting them",
    )
    evaluation_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between scheduled snapshot evaluations",
    )
