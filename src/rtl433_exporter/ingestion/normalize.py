"""Normalization of parsed records into validated samples.

Validation failures are expected and frequent (rtl_433 picks up every
sensor in range), so they are returned as :class:`Discard` values rather
than raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from rtl433_exporter.config import validate_area_map
from rtl433_exporter.state.events import (
    Discard,
    DiscardReason,
    NormalizeOutcome,
    RawRecord,
    ValidatedSample,
)

_logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = (
    "id",
    "temperature_F",
    "humidity",
    "battery_ok",
)


def safe_float(value: Any) -> float | None:
    """Parse a decimal reading, or ``None`` if it is not a plain number.

    ``float()`` also accepts digit separators and surrounding whitespace,
    neither of which a well-formed reading contains.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str) and ("_" in value or value != value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def missing_fields(fields: Mapping[str, str]) -> list[str]:
    return [name for name in REQUIRED_FIELDS if name not in fields]


class SampleNormalizer:
    """Validate raw records and resolve device ids to area names."""

    def __init__(self, area_map: Mapping[str, str] | None = None) -> None:
        self._area_map: Mapping[str, str] = MappingProxyType(validate_area_map(area_map or {}))

    @property
    def area_map(self) -> Mapping[str, str]:
        return self._area_map

    def resolve_area(self, device_id: str) -> str:
        return self._area_map.get(device_id, device_id)

    def normalize(self, record: RawRecord) -> NormalizeOutcome:
        fields = record.fields

        missing = missing_fields(fields)
        if missing:
            _logger.info("Discarding sample, missing required fields %s: %s", missing, record)
            return Discard(reason=DiscardReason.MISSING_FIELDS, record=record)

        area = self.resolve_area(fields["id"])

        temperature = safe_float(fields["temperature_F"])
        humidity = safe_float(fields["humidity"])
        battery = safe_float(fields["battery_ok"])
        if temperature is None or humidity is None or battery is None:
            _logger.info(
                "Discarding sample, unable to parse temperature, humidity, or battery status: %s",
                record,
            )
            return Discard(reason=DiscardReason.INVALID_NUMBER, record=record)

        return ValidatedSample(
            time=record.captured_at,
            area=area,
            temperature=temperature,
            humidity=humidity,
            battery=battery,
        )

    def normalize_all(self, records: Iterable[RawRecord]) -> list[NormalizeOutcome]:
        return [self.normalize(record) for record in records]
