"""Registry - admits collectors and gathers consistent snapshots."""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional

from metricgate.config import settings
from metricgate.engine.desc import Desc
from metricgate.engine.errors import (
    AlreadyRegisteredError,
    CollectorError,
    DuplicateDescriptorError,
    GatherError,
    InconsistentHelpError,
    InconsistentLabelDimensionError,
    MetricGateError,
)
from metricgate.engine.metric import Collector
from metricgate.models import MetricFamily, MetricRecord

logger = logging.getLogger(__name__)


@dataclass
class _DescEntry:
    """What the registry remembers about one descriptor id."""

    fq_name: str
    dim_hash: int
    help: str
    refs: int = 0


class Registry:
    """
    Thread-safe registry of collectors.

    Registration state per collector: unregistered -> registered ->
    unregistered. The lock guards the collector set and the descriptor
    table only; collect() calls run outside it.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._lock = threading.Lock()
        self._collectors: dict[int, tuple[Collector, tuple[Desc, ...]]] = {}
        self._descs: dict[int, _DescEntry] = {}
        self._max_workers = max_workers if max_workers is not None else settings.gather_max_workers

    def register(self, collector: Collector) -> None:
        """
        Register a collector.

        Raises:
            AlreadyRegisteredError: the same instance is registered
            DuplicateDescriptorError: describe() repeats a descriptor id
            InconsistentLabelDimensionError: a known id with other label names
            InconsistentHelpError: a known id with another help string

        A failed registration leaves the registry unchanged.
        """
        descs = self._describe(collector)
        with self._lock:
            if id(collector) in self._collectors:
                raise AlreadyRegisteredError(collector)
            self._register_locked(collector, descs)
        logger.debug(f"Registered {collector!r} with {len(descs)} descriptor(s)")

    def must_register(self, *collectors: Collector) -> None:
        """Register every collector, raising on the first failure."""
        for collector in collectors:
            self.register(collector)

    def register_or_get(self, collector: Collector) -> Collector:
        """
        Register collector, or return an equivalent one already registered.

        Equivalent means the same instance, or a collector of the same type
        describing exactly the same set of descriptor ids.
        """
        descs = self._describe(collector)
        wanted = frozenset(desc.id for desc in descs)
        with self._lock:
            if id(collector) in self._collectors:
                return collector
            for existing, existing_descs in self._collectors.values():
                if type(existing) is type(collector) and wanted == frozenset(
                    desc.id for desc in existing_descs
                ):
                    return existing
            self._register_locked(collector, descs)
        logger.debug(f"Registered {collector!r} with {len(descs)} descriptor(s)")
        return collector

    def unregister(self, collector: Collector) -> bool:
        """Remove a collector; return whether it was registered."""
        with self._lock:
            entry = self._collectors.pop(id(collector), None)
            if entry is None:
                return False
            for desc in entry[1]:
                known = self._descs[desc.id]
                known.refs -= 1
                if known.refs == 0:
                    del self._descs[desc.id]
        logger.debug(f"Unregistered {collector!r}")
        return True

    def is_registered(self, collector: Collector) -> bool:
        with self._lock:
            return id(collector) in self._collectors

    def gather(self) -> tuple[list[MetricFamily], Optional[GatherError]]:
        """
        Collect every registered collector and assemble sorted families.

        Collectors run concurrently on a pool with one worker per collector
        (capped by max_workers). A collector that raises is reported and
        skipped; every valid series from the others is still returned.

        Returns:
            (families, error) where families are sorted by name and their
            series by label pairs, and error aggregates every problem found
            (None when there were none).
        """
        with self._lock:
            collectors = [collector for collector, _ in self._collectors.values()]
            known_ids = set(self._descs)

        if not collectors:
            return [], None

        intake: queue.SimpleQueue = queue.SimpleQueue()
        workers = len(collectors)
        if self._max_workers is not None:
            workers = min(workers, self._max_workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="metricgate-gather") as pool:
            futures = [pool.submit(self._drain, collector, intake) for collector in collectors]
            wait(futures)

        errors: list[MetricGateError] = []
        for future in futures:
            errors.extend(future.result())

        families: dict[int, MetricFamily] = {}
        sort_keys: dict[int, tuple] = {}
        seen: dict[int, set] = {}
        while True:
            try:
                desc, record = intake.get_nowait()
            except queue.Empty:
                break

            if desc.id not in known_ids:
                errors.append(
                    CollectorError(
                        f"Collected metric {desc.fq_name} with unregistered descriptor {desc!r}"
                    )
                )
                continue
            if len(record.labels) != len(desc.variable_labels) + len(desc.const_labels):
                errors.append(
                    CollectorError(f"Collected metric {desc.fq_name} has inconsistent label pairs")
                )
                continue

            family = families.get(desc.id)
            if family is None:
                family = MetricFamily(name=desc.fq_name, help=desc.help, type=record.type)
                families[desc.id] = family
                sort_keys[desc.id] = (
                    desc.fq_name,
                    tuple((pair.name, pair.value) for pair in desc.const_label_pairs),
                )
                seen[desc.id] = set()
            elif family.type != record.type:
                errors.append(
                    CollectorError(
                        f"Collected metric {desc.fq_name} of type {record.type.value} "
                        f"in family of type {family.type.value}"
                    )
                )
                continue

            key = record.label_key()
            if key in seen[desc.id]:
                errors.append(
                    CollectorError(
                        f"Collected metric {desc.fq_name} {dict(key)} was collected before "
                        "with the same label values"
                    )
                )
                continue
            seen[desc.id].add(key)
            family.metrics.append(record)

        result = []
        for desc_id in sorted(families, key=sort_keys.__getitem__):
            family = families[desc_id]
            family.metrics.sort(key=MetricRecord.label_key)
            result.append(family)

        if not errors:
            return result, None
        logger.warning(f"Gathering finished with {len(errors)} error(s)")
        return result, GatherError(errors)

    def _describe(self, collector: Collector) -> tuple[Desc, ...]:
        descs = tuple(collector.describe())
        if not descs:
            raise DuplicateDescriptorError(f"Collector {collector!r} has no descriptors")
        ids: set[int] = set()
        for desc in descs:
            if desc.id in ids:
                raise DuplicateDescriptorError(
                    f"Descriptor {desc!r} described more than once by {collector!r}"
                )
            ids.add(desc.id)
        return descs

    def _register_locked(self, collector: Collector, descs: tuple[Desc, ...]) -> None:
        # Validate everything first so a failure changes nothing
        for desc in descs:
            known = self._descs.get(desc.id)
            if known is None:
                continue
            if known.dim_hash != desc.dim_hash:
                raise InconsistentLabelDimensionError(desc.fq_name)
            if known.help != desc.help:
                raise InconsistentHelpError(desc.fq_name, known.help, desc.help)

        for desc in descs:
            known = self._descs.get(desc.id)
            if known is None:
                known = _DescEntry(fq_name=desc.fq_name, dim_hash=desc.dim_hash, help=desc.help)
                self._descs[desc.id] = known
            known.refs += 1
        self._collectors[id(collector)] = (collector, descs)

    @staticmethod
    def _drain(collector: Collector, intake: queue.SimpleQueue) -> list[MetricGateError]:
        """Run one collector, streaming (desc, record) pairs into intake."""
        errors: list[MetricGateError] = []
        try:
            for metric in collector.collect():
                try:
                    intake.put((metric.desc(), metric.write()))
                except Exception as e:
                    logger.warning(f"Writing {metric!r} failed: {e}", exc_info=True)
                    errors.append(CollectorError(f"Writing {metric!r} failed: {e}", collector))
        except Exception as e:
            logger.warning(f"Collector {collector!r} failed: {e}", exc_info=True)
            errors.append(CollectorError(f"Collector {collector!r} failed: {e}", collector))
        return errors
