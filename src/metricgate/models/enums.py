"""MetricGate enumerations."""

from enum import Enum


class MetricType(str, Enum):
    """Type tag carried by every exposed metric family."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"
    UNTYPED = "untyped"

    @classmethod
    def scalar_types(cls) -> set["MetricType"]:
        """Return types whose payload is a single value."""
        return {cls.COUNTER, cls.GAUGE, cls.UNTYPED}

    def is_scalar(self) -> bool:
        """Check if the type carries a single value."""
        return self in self.scalar_types()
