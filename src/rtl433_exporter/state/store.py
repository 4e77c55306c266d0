"""Deterministic in-memory state store.

This is the only component allowed to merge normalized samples and to own
the measurement counters. Every mutation and every read holds one lock, so
an ingestion batch is applied atomically with respect to scrapes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from rtl433_exporter.state.events import Discard, NormalizeOutcome, ValidatedSample
from rtl433_exporter.state.policy import should_accept_update

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AreaState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    latest: ValidatedSample
    total_count: float = 0.0


@dataclass(frozen=True, slots=True)
class StoreSnapshot:
    """Point-in-time copy of the store, safe to read without the lock."""

    latest: Mapping[str, ValidatedSample] = field(default_factory=dict)
    totals: Mapping[str, float] = field(default_factory=dict)
    discarded_count: float = 0.0


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Per-call accounting of what :meth:`StateStore.reconcile` did."""

    applied: int = 0
    stale: int = 0
    discarded: int = 0


class StateStore:
    """In-memory store for per-area sensor state.

    The store is deterministic: given the same sequence of outcomes, it
    produces the same snapshots. Samples only replace the stored reading for
    their area when strictly newer; ``total_count`` counts every validated
    sample regardless.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._areas: dict[str, AreaState] = {}
        self._discarded: float = 0.0

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    def reconcile(self, outcomes: Iterable[NormalizeOutcome]) -> ReconcileResult:
        """Apply normalized outcomes in order.

        ``Discard`` outcomes bump the discarded counter. Samples bump their
        area's total and then replace the latest reading if they pass the
        recency check; stale samples are silently ignored.
        """
        # Materialize before locking so a lazy producer never runs under the lock.
        batch = list(outcomes)
        applied = stale = discarded = 0

        with self._lock:
            for outcome in batch:
                if isinstance(outcome, Discard):
                    self._discarded += 1
                    discarded += 1
                    continue

                state = self._areas.get(outcome.area)
                if state is None:
                    self._areas[outcome.area] = AreaState(latest=outcome, total_count=1)
                    applied += 1
                    continue

                state.total_count += 1
                if should_accept_update(cached_time=state.latest.time, incoming_time=outcome.time):
                    state.latest = outcome
                    applied += 1
                else:
                    stale += 1
                    _logger.debug(
                        "Ignoring sample for %s at %s, stored reading is from %s",
                        outcome.area,
                        outcome.time.isoformat(),
                        state.latest.time.isoformat(),
                    )

        return ReconcileResult(applied=applied, stale=stale, discarded=discarded)

    def latest(self, area: str) -> ValidatedSample | None:
        """Latest accepted sample for *area*, or ``None`` if never seen."""
        with self._lock:
            state = self._areas.get(area)
            return state.latest if state is not None else None

    def total(self, area: str) -> float:
        """Validated samples ever received for *area*."""
        with self._lock:
            state = self._areas.get(area)
            return state.total_count if state is not None else 0.0

    @property
    def discarded_count(self) -> float:
        with self._lock:
            return self._discarded

    def areas(self) -> list[str]:
        with self._lock:
            return sorted(self._areas)

    def snapshot(self) -> StoreSnapshot:
        """Consistent copy of every area and counter, taken under one lock."""
        with self._lock:
            # ValidatedSample is frozen, so sharing instances is safe.
            latest = {area: state.latest for area, state in self._areas.items()}
            totals = {area: state.total_count for area, state in self._areas.items()}
            discarded = self._discarded
        return StoreSnapshot(
            latest=MappingProxyType(latest),
            totals=MappingProxyType(totals),
            discarded_count=discarded,
        )
