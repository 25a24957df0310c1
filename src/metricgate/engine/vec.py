"""Metric vectors - same-kind metrics partitioned by label values."""

import threading
from typing import Callable, Iterable, Iterator, Mapping, Optional

from metricgate.engine.desc import Desc
from metricgate.engine.histogram import Histogram, check_bucket_label
from metricgate.engine.metric import Collector, Metric, check_label_values, label_values_from_map
from metricgate.engine.opts import HistogramOpts, Opts, SummaryOpts
from metricgate.engine.summary import Summary, check_quantile_label
from metricgate.engine.value import Counter, Gauge, Untyped

LabelValues = tuple[str, ...]


def hash_label_values(values: LabelValues) -> int:
    """Index key for a label value tuple; equal keys do not imply equal tuples."""
    return hash(values)


class MetricVec(Collector):
    """
    Maps label value tuples to lazily created metrics of one kind.

    The index maps hash_label_values(values) to a tuple of (values, metric)
    entries. Entry tuples are replaced, never mutated, so lookups of
    existing children read the index without taking the lock. Creation,
    deletion and reset take the per-vector lock; creation re-checks under
    it so each label tuple gets exactly one metric.
    """

    def __init__(self, desc: Desc, new_metric: Callable[..., Metric]):
        self._desc = desc
        self._new_metric = new_metric
        self._children: dict[int, tuple[tuple[LabelValues, Metric], ...]] = {}
        self._lock = threading.Lock()

    @property
    def desc(self) -> Desc:
        return self._desc

    def describe(self) -> Iterator[Desc]:
        yield self._desc

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            children = [metric for entries in self._children.values() for _, metric in entries]
        yield from children

    def get_or_create_with_label_values(self, *values: str) -> Metric:
        """Return the metric for the label values, creating it on first use."""
        check_label_values(self._desc, values)
        return self._get_or_create(values)

    def get_or_create_with_label_map(self, labels: Mapping[str, str]) -> Metric:
        """Like get_or_create_with_label_values, keyed by label name."""
        values = label_values_from_map(self._desc, labels)
        check_label_values(self._desc, values)
        return self._get_or_create(values)

    def labels(self, *values: str, **labels: str) -> Metric:
        """Shorthand accepting either positional values or keyword labels."""
        if values and labels:
            raise ValueError("Pass label values positionally or by name, not both")
        if labels:
            return self.get_or_create_with_label_map(labels)
        return self.get_or_create_with_label_values(*values)

    def delete_with_label_values(self, *values: str) -> bool:
        """Remove the metric for the label values; return whether it existed."""
        check_label_values(self._desc, values)
        return self._delete(values)

    def delete_with_label_map(self, labels: Mapping[str, str]) -> bool:
        values = label_values_from_map(self._desc, labels)
        check_label_values(self._desc, values)
        return self._delete(values)

    def reset(self) -> None:
        """Remove every metric from the vector."""
        with self._lock:
            self._children = {}

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._children.values())

    def _lookup(self, key: int, values: LabelValues) -> Optional[Metric]:
        for stored, metric in self._children.get(key, ()):
            if stored == values:
                return metric
        return None

    def _get_or_create(self, values: LabelValues) -> Metric:
        key = hash_label_values(values)
        metric = self._lookup(key, values)
        if metric is not None:
            return metric

        with self._lock:
            metric = self._lookup(key, values)
            if metric is None:
                metric = self._new_metric(*values)
                self._children[key] = self._children.get(key, ()) + ((values, metric),)
        return metric

    def _delete(self, values: LabelValues) -> bool:
        key = hash_label_values(values)
        with self._lock:
            entries = self._children.get(key, ())
            remaining = tuple(entry for entry in entries if entry[0] != values)
            if len(remaining) == len(entries):
                return False
            if remaining:
                self._children[key] = remaining
            else:
                del self._children[key]
            return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._desc.fq_name!r}, {list(self._desc.variable_labels)})"


class CounterVec(MetricVec):
    """Counters partitioned by label values."""

    def __init__(self, opts: Opts, label_names: Iterable[str]):
        desc = opts.to_desc(label_names)
        super().__init__(desc, lambda *values: Counter(desc, *values))


class GaugeVec(MetricVec):
    """Gauges partitioned by label values."""

    def __init__(self, opts: Opts, label_names: Iterable[str]):
        desc = opts.to_desc(label_names)
        super().__init__(desc, lambda *values: Gauge(desc, *values))


class UntypedVec(MetricVec):
    """Untyped metrics partitioned by label values."""

    def __init__(self, opts: Opts, label_names: Iterable[str]):
        desc = opts.to_desc(label_names)
        super().__init__(desc, lambda *values: Untyped(desc, *values))


class HistogramVec(MetricVec):
    """Histograms sharing one bucket layout, partitioned by label values."""

    def __init__(self, opts: HistogramOpts, label_names: Iterable[str]):
        desc = opts.to_desc(label_names)
        check_bucket_label(desc)
        buckets = list(opts.buckets)
        super().__init__(desc, lambda *values: Histogram(desc, buckets, *values))


class SummaryVec(MetricVec):
    """Summaries sharing one configuration, partitioned by label values."""

    def __init__(
        self,
        opts: SummaryOpts,
        label_names: Iterable[str],
        now: Optional[Callable[[], float]] = None,
    ):
        desc = opts.to_desc(label_names)
        check_quantile_label(desc)
        super().__init__(
            desc,
            lambda *values: Summary(
                desc,
                opts.objectives,
                opts.max_age,
                opts.age_buckets,
                opts.buf_cap,
                *values,
                now=now,
            ),
        )


def new_counter_vec(opts: Opts, label_names: Iterable[str]) -> CounterVec:
    return CounterVec(opts, label_names)


def new_gauge_vec(opts: Opts, label_names: Iterable[str]) -> GaugeVec:
    return GaugeVec(opts, label_names)


def new_untyped_vec(opts: Opts, label_names: Iterable[str]) -> UntypedVec:
    return UntypedVec(opts, label_names)


def new_histogram_vec(opts: HistogramOpts, label_names: Iterable[str]) -> HistogramVec:
    return HistogramVec(opts, label_names)


def new_summary_vec(
    opts: SummaryOpts,
    label_names: Iterable[str],
    now: Optional[Callable[[], float]] = None,
) -> SummaryVec:
    return SummaryVec(opts, label_names, now)
