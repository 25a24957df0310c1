"""Metric and Collector contracts, plus throw-away const metrics."""

import math
from abc import ABC, abstractmethod
from typing import Iterator, Mapping

from metricgate.engine.desc import Desc
from metricgate.engine.errors import InconsistentCardinalityError
from metricgate.models import (
    Bucket,
    HistogramValue,
    LabelPair,
    MetricRecord,
    MetricType,
    Quantile,
    SummaryValue,
)


class Metric(ABC):
    """A single series: a descriptor, concrete label values and a current value."""

    @abstractmethod
    def desc(self) -> Desc:
        """Return the descriptor of the family this series belongs to."""

    @abstractmethod
    def write(self) -> MetricRecord:
        """Snapshot the current value into an exposition record."""


class Collector(ABC):
    """Anything the registry can describe and collect."""

    @abstractmethod
    def describe(self) -> Iterator[Desc]:
        """
        Yield every descriptor this collector may ever produce metrics for.

        Must yield the same set on every call.
        """

    @abstractmethod
    def collect(self) -> Iterator[Metric]:
        """Yield the current metrics. Called concurrently with other collectors."""


class SelfCollector(Collector):
    """Mixin for metrics that collect themselves."""

    def describe(self) -> Iterator[Desc]:
        yield self.desc()

    def collect(self) -> Iterator[Metric]:
        yield self


def check_label_values(desc: Desc, label_values: tuple[str, ...]) -> None:
    """Raise if label_values do not match desc's variable labels."""
    if len(label_values) != len(desc.variable_labels):
        raise InconsistentCardinalityError(
            desc.fq_name, len(desc.variable_labels), len(label_values)
        )
    for value in label_values:
        if not isinstance(value, str):
            raise TypeError(
                f"{desc.fq_name}: label values must be strings, got {type(value).__name__}"
            )


def label_values_from_map(desc: Desc, labels: Mapping[str, str]) -> tuple[str, ...]:
    """Order a label map by desc's variable labels."""
    if len(labels) != len(desc.variable_labels):
        raise InconsistentCardinalityError(
            desc.fq_name, len(desc.variable_labels), len(labels)
        )
    values = []
    for name in desc.variable_labels:
        if name not in labels:
            raise InconsistentCardinalityError(
                desc.fq_name,
                len(desc.variable_labels),
                len(labels),
                f"missing label {name!r}",
            )
        values.append(labels[name])
    return tuple(values)


def make_label_pairs(desc: Desc, label_values: tuple[str, ...]) -> list[LabelPair]:
    """Merge const and variable labels, sorted by label name."""
    if not desc.variable_labels:
        return list(desc.const_label_pairs)
    pairs = list(desc.const_label_pairs)
    pairs.extend(
        LabelPair(name=name, value=value)
        for name, value in zip(desc.variable_labels, label_values)
    )
    pairs.sort(key=lambda pair: pair.name)
    return pairs


class ConstMetric(Metric):
    """Immutable counter, gauge or untyped value built at collection time."""

    def __init__(self, desc: Desc, value_type: MetricType, value: float, *label_values: str):
        if not value_type.is_scalar():
            raise ValueError(f"{value_type.value} is not a scalar metric type")
        check_label_values(desc, label_values)
        self._desc = desc
        self._type = value_type
        self._value = float(value)
        self._label_pairs = make_label_pairs(desc, label_values)

    def desc(self) -> Desc:
        return self._desc

    def write(self) -> MetricRecord:
        return MetricRecord(
            name=self._desc.fq_name,
            help=self._desc.help,
            type=self._type,
            labels=self._label_pairs,
            value=self._value,
        )


class ConstHistogram(Metric):
    """Immutable histogram snapshot; buckets maps upper bound to cumulative count."""

    def __init__(
        self,
        desc: Desc,
        count: int,
        sum: float,
        buckets: Mapping[float, int],
        *label_values: str,
    ):
        check_label_values(desc, label_values)
        self._desc = desc
        self._label_pairs = make_label_pairs(desc, label_values)
        self._value = HistogramValue(
            sample_count=count,
            sample_sum=sum,
            buckets=[
                Bucket(upper_bound=bound, cumulative_count=buckets[bound])
                for bound in sorted(buckets)
                if not math.isinf(bound)
            ],
        )

    def desc(self) -> Desc:
        return self._desc

    def write(self) -> MetricRecord:
        return MetricRecord(
            name=self._desc.fq_name,
            help=self._desc.help,
            type=MetricType.HISTOGRAM,
            labels=self._label_pairs,
            histogram=self._value,
        )


class ConstSummary(Metric):
    """Immutable summary snapshot; quantiles maps quantile to estimated value."""

    def __init__(
        self,
        desc: Desc,
        count: int,
        sum: float,
        quantiles: Mapping[float, float],
        *label_values: str,
    ):
        check_label_values(desc, label_values)
        self._desc = desc
        self._label_pairs = make_label_pairs(desc, label_values)
        self._value = SummaryValue(
            sample_count=count,
            sample_sum=sum,
            quantiles=[Quantile(quantile=q, value=quantiles[q]) for q in sorted(quantiles)],
        )

    def desc(self) -> Desc:
        return self._desc

    def write(self) -> MetricRecord:
        return MetricRecord(
            name=self._desc.fq_name,
            help=self._desc.help,
            type=MetricType.SUMMARY,
            labels=self._label_pairs,
            summary=self._value,
        )


def new_const_metric(
    desc: Desc, value_type: MetricType, value: float, *label_values: str
) -> ConstMetric:
    """Create a throw-away scalar metric, typically inside a custom collect()."""
    return ConstMetric(desc, value_type, value, *label_values)


def new_const_histogram(
    desc: Desc, count: int, sum: float, buckets: Mapping[float, int], *label_values: str
) -> ConstHistogram:
    return ConstHistogram(desc, count, sum, buckets, *label_values)


def new_const_summary(
    desc: Desc, count: int, sum: float, quantiles: Mapping[float, float], *label_values: str
) -> ConstSummary:
    return ConstSummary(desc, count, sum, quantiles, *label_values)
