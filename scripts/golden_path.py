#!/usr/bin/env python3
"""Golden path demo for MetricGate (instrument, gather, dump JSON)."""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys

from metricgate.engine import (
    HistogramOpts,
    Opts,
    Registry,
    SummaryOpts,
    new_counter_vec,
    new_gauge,
    new_histogram,
    new_summary_vec,
)
from metricgate.log import configure_logging

logger = logging.getLogger("metricgate.golden_path")


def build_registry() -> tuple[Registry, dict]:
    registry = Registry()
    metrics = {
        "requests": new_counter_vec(
            Opts(namespace="demo", name="requests_total", help="Requests handled."),
            ["method", "code"],
        ),
        "in_flight": new_gauge(Opts(namespace="demo", name="in_flight", help="Requests in flight.")),
        "latency": new_histogram(
            HistogramOpts(
                namespace="demo",
                name="latency_seconds",
                help="Request latency.",
                buckets=[0.01, 0.05, 0.1, 0.5, 1],
            )
        ),
        "payload": new_summary_vec(
            SummaryOpts(namespace="demo", name="payload_bytes", help="Payload size."),
            ["method"],
        ),
    }
    registry.must_register(*metrics.values())
    return registry, metrics


def simulate(metrics: dict, requests: int, seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(requests):
        method = rng.choice(["GET", "GET", "GET", "POST"])
        code = rng.choice(["200"] * 9 + ["500"])
        metrics["in_flight"].inc()
        metrics["requests"].labels(method, code).inc()
        metrics["latency"].observe(rng.expovariate(20))
        metrics["payload"].labels(method).observe(rng.uniform(100, 10_000))
        metrics["in_flight"].dec()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--requests", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=1)
    args = parser.parse_args()

    configure_logging()
    registry, metrics = build_registry()
    simulate(metrics, args.requests, args.seed)

    families, error = registry.gather()
    if error is not None:
        logger.error(f"Gather reported problems: {error}")

    json.dump([family.model_dump(mode="json") for family in families], sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0 if error is None else 1


if __name__ == "__main__":
    sys.exit(main())
