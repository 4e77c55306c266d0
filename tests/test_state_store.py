from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

from rtl433_exporter.state.events import Discard, DiscardReason, RawRecord, ValidatedSample
from rtl433_exporter.state.policy import is_fresh, should_accept_update
from rtl433_exporter.state.store import StateStore


def _dt(seconds: float = 0) -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=seconds)


def _sample(t: float, area: str = "kitchen", temperature: float = 70.0) -> ValidatedSample:
    return ValidatedSample(time=_dt(t), area=area, temperature=temperature, humidity=40.0, battery=1.0)


def _discard() -> Discard:
    return Discard(reason=DiscardReason.MISSING_FIELDS, record=RawRecord(metric_name="x", captured_at=_dt()))


def test_first_sample_creates_area() -> None:
    store = StateStore()

    result = store.reconcile([_sample(1)])

    assert result.applied == 1
    assert store.latest("kitchen") == _sample(1)
    assert store.total("kitchen") == 1
    assert store.areas() == ["kitchen"]


def test_out_of_order_sample_is_noop() -> None:
    store = StateStore()

    result = store.reconcile([_sample(1, temperature=60), _sample(2, temperature=65), _sample(1, temperature=99)])

    assert store.latest("kitchen") == _sample(2, temperature=65)
    assert result.applied == 2
    assert result.stale == 1


def test_equal_timestamp_keeps_first_writer() -> None:
    store = StateStore()

    store.reconcile([_sample(5, temperature=50), _sample(5, temperature=60)])

    latest = store.latest("kitchen")
    assert latest is not None
    assert latest.temperature == 50


def test_total_counts_every_sample_including_stale() -> None:
    store = StateStore()

    store.reconcile([_sample(t) for t in (3, 1, 2, 3, 0)])

    assert store.total("kitchen") == 5
    assert store.latest("kitchen") == _sample(3)


def test_discards_only_touch_discard_counter() -> None:
    store = StateStore()

    result = store.reconcile([_discard(), _discard()])

    assert result.discarded == 2
    assert store.discarded_count == 2
    assert store.areas() == []
    assert store.latest("kitchen") is None
    assert store.total("kitchen") == 0


def test_areas_are_independent() -> None:
    store = StateStore()

    store.reconcile([_sample(2, area="a"), _sample(1, area="b")])

    snapshot = store.snapshot()
    assert set(snapshot.latest) == {"a", "b"}
    assert snapshot.totals == {"a": 1.0, "b": 1.0}
    assert snapshot.discarded_count == 0


def test_snapshot_is_isolated_from_later_writes() -> None:
    store = StateStore()
    store.reconcile([_sample(1)])

    snapshot = store.snapshot()
    store.reconcile([_sample(2), _discard()])

    assert snapshot.latest["kitchen"] == _sample(1)
    assert snapshot.totals["kitchen"] == 1
    assert snapshot.discarded_count == 0


def test_concurrent_reconcile_is_deterministic_by_timestamp() -> None:
    store = StateStore()
    batches = [[_sample(t, area=f"area-{t % 4}") for t in range(start, 400, 8)] for start in range(8)]
    threads = [threading.Thread(target=store.reconcile, args=(batch,)) for batch in reversed(batches)]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshot = store.snapshot()
    assert sum(snapshot.totals.values()) == 400
    for area in range(4):
        latest = snapshot.latest[f"area-{area}"]
        assert latest.time == _dt(max(t for t in range(400) if t % 4 == area))


def test_policy_helpers() -> None:
    assert should_accept_update(cached_time=None, incoming_time=_dt())
    assert should_accept_update(cached_time=_dt(0), incoming_time=_dt(1))
    assert not should_accept_update(cached_time=_dt(1), incoming_time=_dt(1))
    assert not should_accept_update(cached_time=_dt(1), incoming_time=_dt(0))

    window = timedelta(seconds=300)
    assert is_fresh(_dt(299), _dt(0), window)
    assert not is_fresh(_dt(300), _dt(0), window)
