"""
Targeted quantile estimator tests.
"""

import math
import random

import pytest

from metricgate.engine.quantile import TargetedStream

TARGETS = {0.5: 0.05, 0.9: 0.01, 0.99: 0.001}


def _rank_error(values, estimate, quantile):
    """Distance between the estimate's rank and the wanted rank, as a fraction."""
    ordered = sorted(values)
    lo = sum(1 for v in ordered if v < estimate)
    hi = sum(1 for v in ordered if v <= estimate)
    wanted = quantile * len(ordered)
    if lo <= wanted <= hi:
        return 0.0
    return min(abs(lo - wanted), abs(hi - wanted)) / len(ordered)


def test_empty_stream_returns_nan():
    stream = TargetedStream(TARGETS)
    assert math.isnan(stream.query(0.5))
    assert stream.count == 0


def test_small_stream_answers_exactly_from_buffer():
    stream = TargetedStream(TARGETS)
    for value in [5, 1, 4, 2, 3]:
        stream.insert(value)
    assert stream.query(0.5) == 3
    assert stream.query(0.99) == 5
    assert stream.query(0) == 1


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_rank_error_within_targets(seed):
    rng = random.Random(seed)
    values = [rng.uniform(0, 1000) for _ in range(20000)]
    stream = TargetedStream(TARGETS, buf_cap=500)
    for value in values:
        stream.insert(value)

    assert stream.count == len(values)
    for quantile, error in TARGETS.items():
        # One rank of slack for ceil rounding
        assert _rank_error(values, stream.query(quantile), quantile) <= error + 1 / len(values)


def test_compression_bounds_memory():
    stream = TargetedStream({0.5: 0.05}, buf_cap=100)
    for value in range(50000):
        stream.insert(value)
    assert len(stream.samples()) < 1000


def test_reset_clears_everything():
    stream = TargetedStream(TARGETS, buf_cap=10)
    for value in range(100):
        stream.insert(value)
    stream.reset()
    assert stream.count == 0
    assert math.isnan(stream.query(0.5))


def test_requires_targets():
    with pytest.raises(ValueError):
        TargetedStream({})
