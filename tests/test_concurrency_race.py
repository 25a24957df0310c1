"""
Concurrency and race condition tests.
"""

import threading

from metricgate.engine import Opts, new_counter, new_counter_vec, new_gauge


def _run_threads(target, count):
    barrier = threading.Barrier(count)

    def wrapped():
        barrier.wait()
        target()

    threads = [threading.Thread(target=wrapped) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def test_concurrent_counter_increments_not_lost():
    """T threads incrementing N times each end at exactly T*N."""
    counter = new_counter(Opts(name="c_total", help="help"))
    threads_count, per_thread = 16, 5000

    def work():
        for _ in range(per_thread):
            counter.inc()

    _run_threads(work, threads_count)
    assert counter.get() == threads_count * per_thread


def test_concurrent_gauge_add_sub_balances():
    gauge = new_gauge(Opts(name="in_flight", help="help"))

    def work():
        for _ in range(2000):
            gauge.inc()
            gauge.dec()

    _run_threads(work, 8)
    assert gauge.get() == 0


def test_gather_during_writes_and_deletes(registry):
    """Gathering while label sets churn never reports duplicates or errors."""
    vec = new_counter_vec(Opts(name="churn_total", help="help"), ["key"])
    registry.register(vec)
    stop = threading.Event()
    problems = []

    def writer():
        i = 0
        while not stop.is_set():
            key = str(i % 20)
            vec.labels(key).inc()
            if i % 7 == 0:
                vec.delete_with_label_values(key)
            i += 1

    def gatherer():
        for _ in range(50):
            families, error = registry.gather()
            if error is not None:
                problems.append(error)
            for family in families:
                keys = [m.labels[0].value for m in family.metrics]
                if len(keys) != len(set(keys)):
                    problems.append(keys)

    writers = [threading.Thread(target=writer) for _ in range(4)]
    for thread in writers:
        thread.start()
    gatherer()
    stop.set()
    for thread in writers:
        thread.join()

    assert problems == []
