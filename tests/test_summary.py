"""
Summary tests: quantile accuracy, sliding window rotation and configuration.
"""

import math
import random
import threading

import pytest

from metricgate.engine import DescriptorValidationError, SummaryOpts, new_summary
from metricgate.models import MetricType


def _quantiles(summary):
    return {q.quantile: q.value for q in summary.write().summary.quantiles}


@pytest.mark.parametrize("seed", range(5))
def test_uniform_median_within_error(seed, clock):
    """Median of uniform [0, 100) with error 0.05 lands in [45, 55]."""
    rng = random.Random(seed)
    summary = new_summary(
        SummaryOpts(name="s", help="help", objectives={0.5: 0.05}), now=clock
    )
    for _ in range(5000):
        summary.observe(rng.uniform(0, 100))

    assert 45 <= _quantiles(summary)[0.5] <= 55


def _rank_error(values, estimate, quantile):
    """Distance between the estimate's rank and the wanted rank, as a fraction."""
    lo = sum(1 for v in values if v < estimate)
    hi = sum(1 for v in values if v <= estimate)
    wanted = quantile * len(values)
    if lo <= wanted <= hi:
        return 0.0
    return min(abs(lo - wanted), abs(hi - wanted)) / len(values)


def _observe_over_slots(summary, clock, rng, slots, per_slot, slot_seconds):
    values = []
    for slot in range(slots):
        if slot:
            clock.advance(slot_seconds)
        for _ in range(per_slot):
            value = rng.uniform(0, 100)
            values.append(value)
            summary.observe(value)
    return values


@pytest.mark.parametrize("seed", range(10))
def test_median_within_error_across_sub_windows(seed, clock):
    """Observations spread over several live sub-windows keep the median in [45, 55]."""
    rng = random.Random(seed)
    summary = new_summary(
        SummaryOpts(name="s", help="help", objectives={0.5: 0.05}, max_age=50, age_buckets=5),
        now=clock,
    )
    _observe_over_slots(summary, clock, rng, slots=4, per_slot=5000, slot_seconds=10)

    assert 45 <= _quantiles(summary)[0.5] <= 55


@pytest.mark.parametrize("seed", range(3))
def test_rank_error_within_objectives_across_sub_windows(seed, clock):
    objectives = {0.5: 0.05, 0.9: 0.01, 0.99: 0.001}
    rng = random.Random(seed)
    summary = new_summary(
        SummaryOpts(name="s", help="help", objectives=objectives, max_age=50, age_buckets=5),
        now=clock,
    )
    values = _observe_over_slots(summary, clock, rng, slots=4, per_slot=5000, slot_seconds=10)

    estimates = _quantiles(summary)
    for quantile, error in objectives.items():
        # One rank of slack for ceil rounding
        assert _rank_error(values, estimates[quantile], quantile) <= error + 1 / len(values)


def test_count_and_sum_reported(clock):
    summary = new_summary(SummaryOpts(name="s", help="help"), now=clock)
    for value in (1, 2, 3, 4):
        summary.observe(value)

    record = summary.write()
    assert record.type == MetricType.SUMMARY
    assert record.summary.sample_count == 4
    assert record.summary.sample_sum == 10
    assert [q.quantile for q in record.summary.quantiles] == [0.5, 0.9, 0.99]


def test_empty_summary_reports_nan_quantiles(clock):
    summary = new_summary(SummaryOpts(name="s", help="help"), now=clock)
    assert all(math.isnan(value) for value in _quantiles(summary).values())


def test_old_observations_age_out(clock):
    summary = new_summary(
        SummaryOpts(name="s", help="help", objectives={0.5: 0.05}, max_age=60, age_buckets=3),
        now=clock,
    )
    for _ in range(100):
        summary.observe(1000.0)

    clock.advance(30)
    for _ in range(100):
        summary.observe(1.0)
    # Old values still inside the window
    assert _quantiles(summary)[0.5] in (1.0, 1000.0)

    clock.advance(45)
    # Only the newer observations remain
    assert _quantiles(summary)[0.5] == 1.0

    clock.advance(600)
    assert math.isnan(_quantiles(summary)[0.5])

    # Count and sum never decay
    record = summary.write().summary
    assert record.sample_count == 200
    assert record.sample_sum == 100 * 1000.0 + 100 * 1.0


def test_without_objectives_only_count_and_sum(clock):
    summary = new_summary(SummaryOpts(name="s", help="help", objectives={}), now=clock)
    summary.observe(3)
    record = summary.write().summary
    assert record.quantiles == []
    assert record.sample_count == 1


def test_quantile_label_reserved():
    with pytest.raises(DescriptorValidationError):
        new_summary(SummaryOpts(name="s", help="help", const_labels={"quantile": "x"}))


@pytest.mark.parametrize(
    "overrides",
    [
        {"objectives": {1.5: 0.01}},
        {"objectives": {0.5: -0.1}},
        {"max_age": 0},
        {"age_buckets": 0},
        {"buf_cap": 0},
    ],
)
def test_invalid_summary_opts_rejected(overrides):
    with pytest.raises(ValueError):
        SummaryOpts(name="s", help="help", **overrides)


def test_concurrent_observe_and_write(clock):
    summary = new_summary(SummaryOpts(name="s", help="help"), now=clock)
    threads_count, per_thread = 8, 1000

    def observer():
        for i in range(per_thread):
            summary.observe(i)

    def reader():
        for _ in range(50):
            summary.write()

    threads = [threading.Thread(target=observer) for _ in range(threads_count)]
    threads.append(threading.Thread(target=reader))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert summary.write().summary.sample_count == threads_count * per_thread
