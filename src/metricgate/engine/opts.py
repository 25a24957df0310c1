"""Construction options for metrics and metric vectors."""

import math
from typing import Iterable

from pydantic import BaseModel, Field, field_validator

from metricgate.config import settings
from metricgate.engine.desc import Desc, build_fq_name


def linear_buckets(start: float, width: float, count: int) -> list[float]:
    """Return `count` buckets, the lowest at `start`, each `width` wide."""
    if count < 1:
        raise ValueError("linear_buckets needs a positive count")
    return [start + i * width for i in range(count)]


def exponential_buckets(start: float, factor: float, count: int) -> list[float]:
    """Return `count` buckets, the lowest at `start`, each `factor` times the previous."""
    if count < 1:
        raise ValueError("exponential_buckets needs a positive count")
    if start <= 0:
        raise ValueError("exponential_buckets needs a positive start value")
    if factor <= 1:
        raise ValueError("exponential_buckets needs a factor greater than 1")
    return [start * factor**i for i in range(count)]


class Opts(BaseModel):
    """Options shared by every metric kind."""

    namespace: str = ""
    subsystem: str = ""
    name: str = Field(..., description="Metric name; joined with namespace and subsystem")
    help: str = Field(..., description="Human-readable description")
    const_labels: dict[str, str] = Field(default_factory=dict)

    @property
    def fq_name(self) -> str:
        return build_fq_name(self.namespace, self.subsystem, self.name)

    def to_desc(self, variable_labels: Iterable[str] = ()) -> Desc:
        return Desc(self.fq_name, self.help, variable_labels, self.const_labels)


# Counter, Gauge and Untyped take no extra options
CounterOpts = Opts
GaugeOpts = Opts
UntypedOpts = Opts


class HistogramOpts(Opts):
    """Histogram options."""

    buckets: list[float] = Field(
        default_factory=lambda: list(settings.default_buckets),
        description="Strictly increasing upper bounds; +Inf is implicit",
    )

    @field_validator("buckets")
    @classmethod
    def _strictly_increasing(cls, value: list[float]) -> list[float]:
        if value and math.isinf(value[-1]) and value[-1] > 0:
            value = value[:-1]
        for lower, upper in zip(value, value[1:]):
            if not lower < upper:
                raise ValueError(
                    f"histogram buckets must be in strictly increasing order: {lower} >= {upper}"
                )
        return value


class SummaryOpts(Opts):
    """Summary options."""

    objectives: dict[float, float] = Field(
        default_factory=lambda: dict(settings.default_objectives),
        description="Target quantile -> allowed absolute error",
    )
    max_age: float = Field(
        default_factory=lambda: settings.summary_max_age_seconds,
        description="Seconds an observation stays in the quantile window",
    )
    age_buckets: int = Field(default_factory=lambda: settings.summary_age_buckets)
    buf_cap: int = Field(default_factory=lambda: settings.summary_buf_cap)

    @field_validator("objectives")
    @classmethod
    def _valid_objectives(cls, value: dict[float, float]) -> dict[float, float]:
        for quantile, error in value.items():
            if not 0 <= quantile <= 1:
                raise ValueError(f"quantile {quantile} outside [0, 1]")
            if not 0 <= error <= 1:
                raise ValueError(f"error {error} for quantile {quantile} outside [0, 1]")
        return value

    @field_validator("max_age")
    @classmethod
    def _positive_age(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("max_age must be positive")
        return value

    @field_validator("age_buckets", "buf_cap")
    @classmethod
    def _positive_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value
