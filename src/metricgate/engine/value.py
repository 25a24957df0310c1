"""Scalar metrics: Counter, Gauge and Untyped."""

import threading
import time

from metricgate.engine.desc import Desc
from metricgate.engine.metric import Metric, SelfCollector, check_label_values, make_label_pairs
from metricgate.engine.opts import Opts
from metricgate.models import MetricRecord, MetricType


class AtomicFloat:
    """
    A float whose read-modify-write updates are indivisible.

    Each instance carries its own lock, so contention is limited to callers
    updating this very field.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: float = 0.0):
        self._value = float(value)
        self._lock = threading.Lock()

    def add(self, amount: float) -> float:
        with self._lock:
            self._value += amount
            return self._value

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def get(self) -> float:
        with self._lock:
            return self._value


class _ValueMetric(SelfCollector, Metric):
    """Shared plumbing for single-value metrics."""

    metric_type: MetricType = MetricType.UNTYPED

    def __init__(self, desc: Desc, *label_values: str):
        check_label_values(desc, label_values)
        self._desc = desc
        self._label_values = label_values
        self._label_pairs = make_label_pairs(desc, label_values)
        self._value = AtomicFloat()

    def desc(self) -> Desc:
        return self._desc

    def get(self) -> float:
        """Return the current value."""
        return self._value.get()

    def write(self) -> MetricRecord:
        return MetricRecord(
            name=self._desc.fq_name,
            help=self._desc.help,
            type=self.metric_type,
            labels=self._label_pairs,
            value=self._value.get(),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._desc.fq_name!r}, {list(self._label_values)})"


class Counter(_ValueMetric):
    """A monotonically increasing counter."""

    metric_type = MetricType.COUNTER

    def inc(self) -> None:
        """Increment by 1."""
        self._value.add(1.0)

    def add(self, amount: float) -> None:
        """Increment by amount; raises ValueError if amount is negative."""
        if amount < 0:
            raise ValueError("Counter cannot decrease in value")
        self._value.add(amount)


class Gauge(_ValueMetric):
    """A value that can go up and down."""

    metric_type = MetricType.GAUGE

    def set(self, value: float) -> None:
        self._value.set(value)

    def inc(self) -> None:
        self._value.add(1.0)

    def dec(self) -> None:
        self._value.add(-1.0)

    def add(self, amount: float) -> None:
        self._value.add(amount)

    def sub(self, amount: float) -> None:
        self._value.add(-amount)

    def set_to_current_time(self) -> None:
        """Set to the current Unix time in seconds."""
        self._value.set(time.time())


class Untyped(Gauge):
    """Gauge-like metric that makes no claim about its type."""

    metric_type = MetricType.UNTYPED


def new_counter(opts: Opts) -> Counter:
    return Counter(opts.to_desc())


def new_gauge(opts: Opts) -> Gauge:
    return Gauge(opts.to_desc())


def new_untyped(opts: Opts) -> Untyped:
    return Untyped(opts.to_desc())
