"""MetricGate data models."""

from metricgate.models.enums import MetricType
from metricgate.models.exposition import (
    Bucket,
    HistogramValue,
    LabelPair,
    MetricFamily,
    MetricRecord,
    Quantile,
    SummaryValue,
)

__all__ = [
    "Bucket",
    "HistogramValue",
    "LabelPair",
    "MetricFamily",
    "MetricRecord",
    "MetricType",
    "Quantile",
    "SummaryValue",
]
