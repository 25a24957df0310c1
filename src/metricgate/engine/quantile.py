"""
Streaming targeted-quantile estimator.

Implements the biased-quantile algorithm of Cormode, Korn, Muthukrishnan and
Srivastava ("Effective Computation of Biased Quantiles over Data Streams"),
restricted to a fixed set of target quantiles. For every target (q, e) a query
returns a value whose rank is within e*n of q*n, where n is the number of
observations held, while memory stays bounded by the targets' error budgets.
"""

import math
from typing import Mapping


class Sample:
    """A compressed run of observations: the value, its width and rank slack."""

    __slots__ = ("value", "width", "delta")

    def __init__(self, value: float, width: float = 1.0, delta: float = 0.0):
        self.value = value
        self.width = width
        self.delta = delta

    def __repr__(self) -> str:
        return f"Sample(value={self.value}, width={self.width}, delta={self.delta})"


class TargetedStream:
    """
    Approximate quantiles for a fixed set of targets.

    Not thread-safe; the owning Summary serialises access.
    """

    def __init__(self, targets: Mapping[float, float], buf_cap: int = 500):
        if not targets:
            raise ValueError("TargetedStream needs at least one target quantile")
        if buf_cap < 1:
            raise ValueError("buf_cap must be at least 1")
        self._targets = sorted(targets.items())
        self._buf_cap = buf_cap
        self._buffer: list[float] = []
        self._buffer_sorted = False
        self._samples: list[Sample] = []
        self._n = 0.0

    @property
    def count(self) -> int:
        """Number of observations held, buffered ones included."""
        return int(self._n) + len(self._buffer)

    def insert(self, value: float) -> None:
        self._buffer.append(value)
        self._buffer_sorted = False
        if len(self._buffer) >= self._buf_cap:
            self._flush()

    def samples(self) -> list[Sample]:
        """Return a copy of the compressed samples after flushing the buffer."""
        self._flush()
        return [Sample(s.value, s.width, s.delta) for s in self._samples]

    def query(self, quantile: float) -> float:
        """Return the estimated value at quantile, NaN when empty."""
        if not self._samples:
            # Exact answer while everything still sits in the buffer
            size = len(self._buffer)
            if size == 0:
                return math.nan
            index = math.ceil(size * quantile)
            if index > 0:
                index -= 1
            self._sort_buffer()
            return self._buffer[min(index, size - 1)]

        self._flush()
        rank = math.ceil(quantile * self._n)
        rank += math.ceil(self._invariant(rank) / 2)
        previous = self._samples[0]
        seen = 0.0
        for current in self._samples[1:]:
            seen += previous.width
            if seen + current.width + current.delta > rank:
                return previous.value
            previous = current
        return previous.value

    def reset(self) -> None:
        self._buffer = []
        self._buffer_sorted = False
        self._samples = []
        self._n = 0.0

    def _invariant(self, rank: float) -> float:
        """Maximum allowed width + delta of a sample at the given rank."""
        allowed = math.inf
        n = self._n
        for quantile, error in self._targets:
            if quantile > 0 and quantile * n <= rank:
                bound = 2 * error * rank / quantile
            elif quantile < 1:
                bound = 2 * error * (n - rank) / (1 - quantile)
            else:
                bound = 2 * error * rank
            allowed = min(allowed, bound)
        return allowed

    def _sort_buffer(self) -> None:
        if not self._buffer_sorted:
            self._buffer.sort()
            self._buffer_sorted = True

    def _flush(self) -> None:
        if not self._buffer:
            return
        self._sort_buffer()
        self._merge([Sample(value) for value in self._buffer])
        self._buffer = []
        self._buffer_sorted = False

    def _merge(self, incoming: list[Sample]) -> None:
        rank = 0.0
        i = 0
        for sample in incoming:
            while i < len(self._samples):
                current = self._samples[i]
                if current.value > sample.value:
                    delta = max(sample.delta, math.floor(self._invariant(rank)) - 1)
                    self._samples.insert(i, Sample(sample.value, sample.width, delta))
                    i += 1
                    break
                rank += current.width
                i += 1
            else:
                self._samples.append(Sample(sample.value, sample.width, sample.delta))
                i += 1
            self._n += sample.width
            rank += sample.width
        self._compress()

    def _compress(self) -> None:
        if len(self._samples) < 2:
            return
        last = self._samples[-1]
        rank = self._n - 1 - last.width
        for i in range(len(self._samples) - 2, -1, -1):
            current = self._samples[i]
            if current.width + last.width + last.delta <= self._invariant(rank):
                last.width += current.width
                del self._samples[i]
            else:
                last = current
            rank -= current.width
