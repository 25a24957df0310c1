"""MetricGate configuration management."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """MetricGate configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="METRICGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # General
    log_level: str = "INFO"

    # Histogram defaults
    default_buckets: list[float] = Field(
        default=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        description="Default histogram bucket upper bounds (latency in seconds)",
    )

    # Summary defaults
    default_objectives: dict[float, float] = Field(
        default={0.5: 0.05, 0.9: 0.01, 0.99: 0.001},
        description="Default target quantiles mapped to their allowed absolute error",
    )
    summary_max_age_seconds: float = Field(
        default=600.0, description="Observation age after which it leaves the quantile window"
    )
    summary_age_buckets: int = Field(
        default=5, description="Number of rotating sub-windows covering max age"
    )
    summary_buf_cap: int = Field(
        default=500, description="Insertion buffer size of each quantile stream"
    )

    # Gathering
    gather_max_workers: Optional[int] = Field(
        default=None,
        description="Upper bound on collect workers per gather (None = one per collector)",
    )

    @field_validator("default_buckets")
    @classmethod
    def _buckets_increasing(cls, value: list[float]) -> list[float]:
        for lower, upper in zip(value, value[1:]):
            if lower >= upper:
                raise ValueError("default_buckets must be strictly increasing")
        return value

    @field_validator("summary_max_age_seconds")
    @classmethod
    def _positive_age(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("summary_max_age_seconds must be positive")
        return value

    @field_validator("summary_age_buckets", "summary_buf_cap")
    @classmethod
    def _positive_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("gather_max_workers")
    @classmethod
    def _positive_workers(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("gather_max_workers must be at least 1")
        return value


settings = Settings()
