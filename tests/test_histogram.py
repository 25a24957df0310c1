"""
Histogram tests: bucket placement, cumulative snapshot and configuration.
"""

import math
import threading

import pytest

from metricgate.engine import (
    DescriptorValidationError,
    HistogramOpts,
    exponential_buckets,
    linear_buckets,
    new_histogram,
)
from metricgate.engine.histogram import Histogram
from metricgate.engine.desc import new_desc
from metricgate.models import MetricType


def _cumulative(histogram):
    return [bucket.cumulative_count for bucket in histogram.write().histogram.buckets]


def test_observations_land_in_cumulative_buckets():
    """Bounds [1, 5, 10] with 0.5, 3, 7, 50 give [1, 2, 3], count 4, sum 60.5."""
    histogram = new_histogram(HistogramOpts(name="h", help="help", buckets=[1, 5, 10]))
    for value in (0.5, 3, 7, 50):
        histogram.observe(value)

    record = histogram.write()
    assert record.type == MetricType.HISTOGRAM
    assert _cumulative(histogram) == [1, 2, 3]
    assert record.histogram.sample_count == 4
    assert record.histogram.sample_sum == 60.5
    assert [b.upper_bound for b in record.histogram.buckets] == [1, 5, 10]


def test_value_on_bound_counts_in_that_bucket():
    histogram = new_histogram(HistogramOpts(name="h", help="help", buckets=[1, 5]))
    histogram.observe(1)
    histogram.observe(5)
    assert _cumulative(histogram) == [1, 2]


def test_nan_lands_in_inf_bucket():
    histogram = new_histogram(HistogramOpts(name="h", help="help", buckets=[1]))
    histogram.observe(float("nan"))
    record = histogram.write()
    assert _cumulative(histogram) == [0]
    assert record.histogram.sample_count == 1
    assert math.isnan(record.histogram.sample_sum)


def test_default_buckets_from_settings():
    histogram = new_histogram(HistogramOpts(name="h", help="help"))
    assert histogram.upper_bounds == [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]


def test_trailing_inf_bound_dropped():
    opts = HistogramOpts(name="h", help="help", buckets=[1, 2, float("inf")])
    assert new_histogram(opts).upper_bounds == [1, 2]


def test_non_increasing_buckets_rejected():
    with pytest.raises(ValueError):
        HistogramOpts(name="h", help="help", buckets=[1, 1, 2])
    with pytest.raises(ValueError):
        Histogram(new_desc("h", "help"), [3, 2])


def test_le_label_reserved():
    with pytest.raises(DescriptorValidationError):
        new_histogram(HistogramOpts(name="h", help="help", const_labels={"le": "1"}))


def test_bucket_helpers():
    assert linear_buckets(1, 2, 3) == [1, 3, 5]
    assert exponential_buckets(1, 10, 3) == [1, 10, 100]
    with pytest.raises(ValueError):
        linear_buckets(0, 1, 0)
    with pytest.raises(ValueError):
        exponential_buckets(0, 2, 3)
    with pytest.raises(ValueError):
        exponential_buckets(1, 1, 3)


def test_concurrent_observe_loses_nothing():
    histogram = new_histogram(HistogramOpts(name="h", help="help", buckets=[1, 10]))
    threads_count, per_thread = 8, 2000

    def worker():
        for i in range(per_thread):
            histogram.observe(i % 20)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    record = histogram.write().histogram
    assert record.sample_count == threads_count * per_thread
    # 0 and 1 land in le=1, 0..10 in le=10
    assert _cumulative(histogram) == [
        threads_count * per_thread * 2 // 20,
        threads_count * per_thread * 11 // 20,
    ]
