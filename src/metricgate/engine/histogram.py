"""Histogram - cumulative bucket observation accumulator."""

import math
from bisect import bisect_left
from typing import Iterable

from metricgate.engine.desc import Desc
from metricgate.engine.errors import DescriptorValidationError
from metricgate.engine.metric import Metric, SelfCollector, check_label_values, make_label_pairs
from metricgate.engine.opts import HistogramOpts
from metricgate.engine.value import AtomicFloat
from metricgate.models import Bucket, HistogramValue, MetricRecord, MetricType

BUCKET_LABEL = "le"


def check_bucket_label(desc: Desc) -> None:
    """Reject descriptors using the label reserved for bucket bounds."""
    if BUCKET_LABEL in desc.variable_labels or BUCKET_LABEL in desc.const_labels:
        raise DescriptorValidationError(
            f"{desc.fq_name}: {BUCKET_LABEL!r} is reserved for histogram buckets",
            desc.fq_name,
        )


class Histogram(SelfCollector, Metric):
    """
    Counts observations into configurable buckets.

    Each bucket, the sum and the count are independent atomic fields with
    no shared critical section. A snapshot taken while observations land may
    see sum/count that do not exactly match the bucket totals.
    """

    def __init__(self, desc: Desc, upper_bounds: Iterable[float], *label_values: str):
        check_bucket_label(desc)
        check_label_values(desc, label_values)

        bounds = [float(bound) for bound in upper_bounds]
        if bounds and math.isinf(bounds[-1]) and bounds[-1] > 0:
            bounds.pop()
        for lower, upper in zip(bounds, bounds[1:]):
            if not lower < upper:
                raise ValueError(
                    f"histogram buckets must be in strictly increasing order: {lower} >= {upper}"
                )

        self._desc = desc
        self._label_values = label_values
        self._label_pairs = make_label_pairs(desc, label_values)
        self._upper_bounds = bounds
        # Non-cumulative per bucket, last slot is the implicit +Inf bucket
        self._buckets = [AtomicFloat() for _ in range(len(bounds) + 1)]
        self._sum = AtomicFloat()
        self._count = AtomicFloat()

    @property
    def upper_bounds(self) -> list[float]:
        return list(self._upper_bounds)

    def desc(self) -> Desc:
        return self._desc

    def observe(self, value: float) -> None:
        """Add a single observation."""
        if math.isnan(value):
            index = len(self._upper_bounds)
        else:
            index = bisect_left(self._upper_bounds, value)
        self._buckets[index].add(1)
        self._sum.add(value)
        self._count.add(1)

    def write(self) -> MetricRecord:
        cumulative = 0
        buckets = []
        for bound, bucket in zip(self._upper_bounds, self._buckets):
            cumulative += int(bucket.get())
            buckets.append(Bucket(upper_bound=bound, cumulative_count=cumulative))
        return MetricRecord(
            name=self._desc.fq_name,
            help=self._desc.help,
            type=MetricType.HISTOGRAM,
            labels=self._label_pairs,
            histogram=HistogramValue(
                sample_count=int(self._count.get()),
                sample_sum=self._sum.get(),
                buckets=buckets,
            ),
        )

    def __repr__(self) -> str:
        return f"Histogram({self._desc.fq_name!r}, {list(self._label_values)})"


def new_histogram(opts: HistogramOpts) -> Histogram:
    return Histogram(opts.to_desc(), opts.buckets)
