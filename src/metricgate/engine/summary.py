"""Summary - streaming quantiles over a sliding time window."""

import threading
import time
from typing import Callable, Mapping, Optional

from metricgate.engine.desc import Desc
from metricgate.engine.errors import DescriptorValidationError
from metricgate.engine.metric import Metric, SelfCollector, check_label_values, make_label_pairs
from metricgate.engine.opts import SummaryOpts
from metricgate.engine.quantile import TargetedStream
from metricgate.models import MetricRecord, MetricType, Quantile, SummaryValue

QUANTILE_LABEL = "quantile"


def check_quantile_label(desc: Desc) -> None:
    """Reject descriptors using the label reserved for quantiles."""
    if QUANTILE_LABEL in desc.variable_labels or QUANTILE_LABEL in desc.const_labels:
        raise DescriptorValidationError(
            f"{desc.fq_name}: {QUANTILE_LABEL!r} is reserved for summary quantiles",
            desc.fq_name,
        )


class Summary(SelfCollector, Metric):
    """
    Tracks the count and sum of observations plus configurable quantiles.

    Quantiles cover roughly the last max_age seconds using age_buckets
    TargetedStreams whose start times are staggered by max_age / age_buckets.
    Every observation goes into all streams. The head stream is the oldest
    one and answers queries on its own, so its error bound is that of a
    single stream. Rotation is lazy: observe() and write() first reset the
    head for each elapsed slot and hand the head role to the next stream.

    Count and sum are cumulative and never decay.

    Estimator state is guarded by a lock per Summary; observe() only ever
    waits on the same instance.
    """

    def __init__(
        self,
        desc: Desc,
        objectives: Mapping[float, float],
        max_age: float,
        age_buckets: int,
        buf_cap: int,
        *label_values: str,
        now: Optional[Callable[[], float]] = None,
    ):
        check_quantile_label(desc)
        if max_age <= 0:
            raise ValueError("max_age must be positive")
        if age_buckets < 1:
            raise ValueError("age_buckets must be at least 1")
        check_label_values(desc, label_values)

        self._desc = desc
        self._label_values = label_values
        self._label_pairs = make_label_pairs(desc, label_values)
        self._objectives = dict(objectives)
        self._quantiles = sorted(self._objectives)
        self._now = now or time.monotonic

        self._lock = threading.Lock()
        self._count = 0
        self._sum = 0.0
        self._age_buckets = age_buckets
        self._slot_duration = max_age / age_buckets
        self._streams = (
            [TargetedStream(self._objectives, buf_cap) for _ in range(age_buckets)]
            if self._objectives
            else []
        )
        self._head = 0
        self._head_expires_at = self._now() + self._slot_duration

    def desc(self) -> Desc:
        return self._desc

    def observe(self, value: float) -> None:
        """Add a single observation."""
        with self._lock:
            if self._streams:
                self._rotate(self._now())
                for stream in self._streams:
                    stream.insert(value)
            self._count += 1
            self._sum += value

    def write(self) -> MetricRecord:
        with self._lock:
            quantiles = []
            if self._streams:
                self._rotate(self._now())
                head = self._streams[self._head]
                quantiles = [Quantile(quantile=q, value=head.query(q)) for q in self._quantiles]
            value = SummaryValue(sample_count=self._count, sample_sum=self._sum, quantiles=quantiles)

        return MetricRecord(
            name=self._desc.fq_name,
            help=self._desc.help,
            type=MetricType.SUMMARY,
            labels=self._label_pairs,
            summary=value,
        )

    def _rotate(self, now: float) -> None:
        if now < self._head_expires_at:
            return
        elapsed_slots = int((now - self._head_expires_at) // self._slot_duration) + 1
        for _ in range(min(elapsed_slots, self._age_buckets)):
            self._streams[self._head].reset()
            self._head = (self._head + 1) % self._age_buckets
        self._head_expires_at += elapsed_slots * self._slot_duration

    def __repr__(self) -> str:
        return f"Summary({self._desc.fq_name!r}, {list(self._label_values)})"


def new_summary(opts: SummaryOpts, now: Optional[Callable[[], float]] = None) -> Summary:
    return Summary(
        opts.to_desc(),
        opts.objectives,
        opts.max_age,
        opts.age_buckets,
        opts.buf_cap,
        now=now,
    )
