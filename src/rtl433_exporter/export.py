"""Scrape-side rendering of the state store.

:class:`SnapshotExporter` turns one consistent store snapshot into metric
points. :class:`Rtl433Collector` adapts those points to a
``prometheus_client`` custom collector.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from rtl433_exporter.config import DEFAULT_STALENESS_SECONDS
from rtl433_exporter.state.events import ensure_tz_aware
from rtl433_exporter.state.policy import is_fresh
from rtl433_exporter.state.store import StateStore

_logger = logging.getLogger(__name__)

TEMPERATURE = "temperature"
HUMIDITY = "humidity"
BATTERY_STATUS = "battery_status"
MEASUREMENTS_TOTAL = "measurements_total"
DISCARDED_MEASUREMENTS_TOTAL = "discarded_measurements_total"

AREA_LABEL = "area"


class MetricKind(StrEnum):
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True, slots=True)
class MetricPoint:
    name: str
    kind: MetricKind
    value: float
    labels: Mapping[str, str] = field(default_factory=dict)


class SnapshotExporter:
    """Render the store into metric points.

    Gauges are only emitted for areas whose latest sample is younger than
    the staleness window at render time, so a sensor that goes offline
    disappears instead of freezing at its last value. Counters are always
    emitted.
    """

    def __init__(
        self,
        store: StateStore,
        *,
        staleness: timedelta = timedelta(seconds=DEFAULT_STALENESS_SECONDS),
    ) -> None:
        self._store = store
        self._staleness = staleness

    @property
    def staleness(self) -> timedelta:
        return self._staleness

    def render(self, now: datetime | None = None) -> list[MetricPoint]:
        snapshot = self._store.snapshot()
        now = ensure_tz_aware(now if now is not None else self._store.clock())

        points: list[MetricPoint] = []

        # meta counts
        for area, total in sorted(snapshot.totals.items()):
            points.append(MetricPoint(MEASUREMENTS_TOTAL, MetricKind.COUNTER, total, {AREA_LABEL: area}))

        points.append(MetricPoint(DISCARDED_MEASUREMENTS_TOTAL, MetricKind.COUNTER, snapshot.discarded_count))

        stale_areas = 0
        for area, sample in sorted(snapshot.latest.items()):
            if not is_fresh(now, sample.time, self._staleness):
                stale_areas += 1
                continue
            labels = {AREA_LABEL: area}
            points.append(MetricPoint(TEMPERATURE, MetricKind.GAUGE, sample.temperature, labels))
            points.append(MetricPoint(HUMIDITY, MetricKind.GAUGE, sample.humidity, labels))
            points.append(MetricPoint(BATTERY_STATUS, MetricKind.GAUGE, sample.battery, labels))

        if stale_areas:
            _logger.debug("Omitted gauges for %d stale area(s)", stale_areas)
        return points


# name -> (kind, help, label names)
_FAMILIES: dict[str, tuple[MetricKind, str, tuple[str, ...]]] = {
    TEMPERATURE: (MetricKind.GAUGE, "Temperature in F of the area (or id).", (AREA_LABEL,)),
    HUMIDITY: (MetricKind.GAUGE, "Humidity as a percentage for the area (or id).", (AREA_LABEL,)),
    BATTERY_STATUS: (MetricKind.GAUGE, "Battery status as reported by the sensor.", (AREA_LABEL,)),
    MEASUREMENTS_TOTAL: (MetricKind.COUNTER, "Number of measurements reported for the area.", (AREA_LABEL,)),
    DISCARDED_MEASUREMENTS_TOTAL: (
        MetricKind.COUNTER,
        "Number of measurements reported that were invalid for some reason.",
        (),
    ),
}


class Rtl433Collector(Collector):
    """``prometheus_client`` collector backed by a :class:`SnapshotExporter`."""

    def __init__(self, exporter: SnapshotExporter, *, namespace: str = "rtl") -> None:
        self._exporter = exporter
        self._namespace = namespace

    def _full_name(self, name: str) -> str:
        return f"{self._namespace}_{name}" if self._namespace else name

    def _families(self) -> dict[str, GaugeMetricFamily | CounterMetricFamily]:
        families: dict[str, GaugeMetricFamily | CounterMetricFamily] = {}
        for name, (kind, documentation, labels) in _FAMILIES.items():
            family_cls = GaugeMetricFamily if kind is MetricKind.GAUGE else CounterMetricFamily
            families[name] = family_cls(self._full_name(name), documentation, labels=list(labels))
        return families

    def describe(self) -> Iterator[Metric]:
        # Registration should not trigger a store read.
        yield from self._families().values()

    def collect(self) -> Iterator[Metric]:
        families = self._families()
        for point in self._exporter.render():
            family = families.get(point.name)
            if family is None:
                _logger.warning("No metric family registered for %s", point.name)
                continue
            label_names = _FAMILIES[point.name][2]
            family.add_metric([point.labels[label] for label in label_names], point.value)
        yield from families.values()
