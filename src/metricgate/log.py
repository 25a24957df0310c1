"""Logging setup for applications embedding MetricGate."""

import logging
from typing import Optional

from metricgate.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging in the MetricGate format.

    The library itself only creates module loggers; call this from the
    application entry point when nothing else has configured logging.
    """
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format=LOG_FORMAT,
    )
