"""Deterministic state merge and freshness policy.

This module intentionally contains *no* payload parsing. The ingestion
boundary is responsible for producing validated samples with timestamps.
"""

from __future__ import annotations

from datetime import datetime, timedelta


def should_accept_update(*, cached_time: datetime | None, incoming_time: datetime) -> bool:
    """Decide whether an incoming sample replaces the cached one.

    Only strictly newer samples win. Equal timestamps keep the first writer,
    which makes duplicate and out-of-order deliveries no-ops.
    """
    if cached_time is None:
        return True
    return incoming_time > cached_time


def is_fresh(now: datetime, sample_time: datetime, window: timedelta) -> bool:
    """True while ``sample_time`` is less than ``window`` old at ``now``."""
    return now - sample_time < window
