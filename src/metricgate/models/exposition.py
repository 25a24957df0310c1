"""Exposition records handed to encoding and transport layers."""

from typing import Optional

from pydantic import BaseModel, Field

from metricgate.models.enums import MetricType


class LabelPair(BaseModel):
    """One label name/value pair of a series."""

    model_config = {"frozen": True}

    name: str
    value: str


class Bucket(BaseModel):
    """Cumulative histogram bucket."""

    upper_bound: float
    cumulative_count: int


class Quantile(BaseModel):
    """Estimated value for one target quantile."""

    quantile: float
    value: float


class HistogramValue(BaseModel):
    """Histogram payload: finite buckets, the implicit +Inf bucket is sample_count."""

    sample_count: int
    sample_sum: float
    buckets: list[Bucket] = Field(default_factory=list)


class SummaryValue(BaseModel):
    """Summary payload."""

    sample_count: int
    sample_sum: float
    quantiles: list[Quantile] = Field(default_factory=list)


class MetricRecord(BaseModel):
    """Snapshot of one series as produced by Metric.write()."""

    name: str = Field(..., description="Fully-qualified family name")
    help: str
    type: MetricType
    labels: list[LabelPair] = Field(default_factory=list, description="Sorted by label name")

    # Exactly one payload is set, depending on type
    value: Optional[float] = None
    histogram: Optional[HistogramValue] = None
    summary: Optional[SummaryValue] = None

    def label_key(self) -> tuple[tuple[str, str], ...]:
        """Return the label pairs as a hashable, sortable key."""
        return tuple((pair.name, pair.value) for pair in self.labels)


class MetricFamily(BaseModel):
    """All gathered series sharing one descriptor."""

    name: str
    help: str
    type: MetricType
    metrics: list[MetricRecord] = Field(default_factory=list)
