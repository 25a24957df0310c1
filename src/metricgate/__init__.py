"""MetricGate - in-process metrics instrumentation with a pull-based registry."""

__version__ = "0.1.0"
