"""Parser for the line protocol rtl_433 posts to its influx output.

Standard InfluxDB line protocol looks like::

    cpu_load_short,host=server01,region=us-west value=0.64 1434055562000000000

rtl_433 instead sends (sometimes several) lines of::

    Acurite-Tower,id=15680,channel=A battery_ok=1,temperature_F=64.760002,humidity=43,mic="CHECKSUM"

There is no trailing timestamp and tags and fields are not reliably
separated, so everything after the measurement name is read as one flat
bag of ``key=value`` pairs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from rtl433_exporter.exceptions import ParseError
from rtl433_exporter.state.events import RawRecord

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_pairs(pairs: str, line: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for pair in pairs.split(","):
        if not pair:
            continue
        kv = pair.split("=")
        if len(kv) != 2 or not kv[0] or not kv[1]:
            raise ParseError(f"Couldn't split {pair!r} into key, value", line=line)
        key, value = kv
        fields[key] = value
    return fields


def parse_line(line: str, captured_at: datetime) -> RawRecord:
    """Parse a single non-empty line into a :class:`RawRecord`."""
    metric_name, sep, rest = line.partition(",")
    if not sep:
        raise ParseError(f"Couldn't split {line!r} into name, rest", line=line)

    space_split = rest.split(" ")
    if len(space_split) != 2:
        raise ParseError(f"Couldn't split {rest!r} into metadata, values", line=line)
    metadata_pairs, value_pairs = space_split

    # Tags and fields are indistinguishable at this point; merge them.
    fields = _parse_pairs(f"{metadata_pairs},{value_pairs}", line)
    return RawRecord(metric_name=metric_name, fields=fields, captured_at=captured_at)


def parse_lines(raw: str, *, clock: Callable[[], datetime] = _utcnow) -> list[RawRecord]:
    """Parse a whole write payload.

    All lines share one capture timestamp taken before parsing starts; the
    decoder's own timestamps are unreliable, so arrival time is used.

    Raises
    ------
    ParseError
        If any line is malformed. No records are returned in that case.
    """
    captured_at = clock()
    records: list[RawRecord] = []
    for line in raw.split("\n"):
        line = line.removesuffix("\r")
        if not line:
            continue
        records.append(parse_line(line, captured_at))

    _logger.debug("Parsed %d line(s) captured at %s", len(records), captured_at.isoformat())
    return records


class LineProtocolParser:
    """Stateful wrapper around :func:`parse_lines` with an injectable clock."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def parse(self, raw: str) -> list[RawRecord]:
        return parse_lines(raw, clock=self._clock)
