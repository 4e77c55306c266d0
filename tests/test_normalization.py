from __future__ import annotations

from datetime import UTC, datetime

import pytest

from rtl433_exporter.exceptions import ConfigError
from rtl433_exporter.ingestion.normalize import REQUIRED_FIELDS, SampleNormalizer, missing_fields, safe_float
from rtl433_exporter.state.events import Discard, DiscardReason, RawRecord, ValidatedSample


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _record(**fields: str) -> RawRecord:
    base = {"id": "15680", "temperature_F": "64.5", "humidity": "43", "battery_ok": "1"}
    base.update(fields)
    return RawRecord(metric_name="Acurite-Tower", fields=base, captured_at=_dt())


def test_mapped_id_resolves_to_area_name() -> None:
    normalizer = SampleNormalizer({"15680": "kitchen"})

    sample = normalizer.normalize(_record())

    assert isinstance(sample, ValidatedSample)
    assert sample.area == "kitchen"
    assert sample.temperature == 64.5
    assert sample.humidity == 43.0
    assert sample.battery == 1.0
    assert sample.time == _dt()


def test_unmapped_id_passes_through() -> None:
    sample = SampleNormalizer({"1": "garage"}).normalize(_record())

    assert isinstance(sample, ValidatedSample)
    assert sample.area == "15680"


@pytest.mark.parametrize("field", REQUIRED_FIELDS)
def test_missing_required_field_is_discarded(field: str) -> None:
    record = _record()
    fields = {k: v for k, v in record.fields.items() if k != field}
    record = RawRecord(metric_name=record.metric_name, fields=fields, captured_at=_dt())

    outcome = SampleNormalizer().normalize(record)

    assert isinstance(outcome, Discard)
    assert outcome.reason == DiscardReason.MISSING_FIELDS
    assert outcome.record == record


@pytest.mark.parametrize("field", ["temperature_F", "humidity", "battery_ok"])
def test_unparseable_number_discards_whole_sample(field: str) -> None:
    outcome = SampleNormalizer().normalize(_record(**{field: '"abc"'}))

    assert isinstance(outcome, Discard)
    assert outcome.reason == DiscardReason.INVALID_NUMBER


def test_area_map_is_read_only() -> None:
    source = {"1": "garage"}
    normalizer = SampleNormalizer(source)
    source["1"] = "attic"

    assert normalizer.resolve_area("1") == "garage"
    with pytest.raises(TypeError):
        normalizer.area_map["2"] = "porch"  # type: ignore[index]


def test_normalize_all_preserves_order() -> None:
    outcomes = SampleNormalizer().normalize_all([_record(id="a"), _record(humidity="x"), _record(id="b")])

    assert [type(o) for o in outcomes] == [ValidatedSample, Discard, ValidatedSample]


def test_helpers() -> None:
    assert safe_float("1.5") == 1.5
    assert safe_float("") is None
    assert safe_float("nope") is None
    assert missing_fields({"id": "1", "humidity": "2"}) == ["temperature_F", "battery_ok"]


@pytest.mark.parametrize("area_map", [{"1": ""}, {"": "kitchen"}])
def test_empty_area_names_rejected_at_construction(area_map: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        SampleNormalizer(area_map)


@pytest.mark.parametrize("value", ["1_000", " 50", "50\t", "50\n"])
def test_numbers_with_separators_or_whitespace_are_discarded(value: str) -> None:
    assert safe_float(value) is None

    outcome = SampleNormalizer().normalize(_record(temperature_F=value))

    assert isinstance(outcome, Discard)
    assert outcome.reason == DiscardReason.INVALID_NUMBER
