"""Process-wide default registry for application wiring.

Library code takes a Registry explicitly; this module only offers the
convenience instance and shortcuts acting on it.
"""

from typing import Optional

from metricgate.engine import Collector, GatherError, Registry
from metricgate.models import MetricFamily

default_registry = Registry()


def register(collector: Collector) -> None:
    default_registry.register(collector)


def must_register(*collectors: Collector) -> None:
    default_registry.must_register(*collectors)


def register_or_get(collector: Collector) -> Collector:
    return default_registry.register_or_get(collector)


def unregister(collector: Collector) -> bool:
    return default_registry.unregister(collector)


def gather() -> tuple[list[MetricFamily], Optional[GatherError]]:
    return default_registry.gather()
