"""Ingestion application helpers.

This module centralizes the write path:

- parse the raw payload into :class:`RawRecord` values
- normalize each record into a sample or a discard
- reconcile the outcomes with a :class:`rtl433_exporter.state.store.StateStore`

The sender cannot act on errors, so :meth:`Ingestor.ingest` never raises for
bad payloads; problems are logged and reported in the returned outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rtl433_exporter.exceptions import ParseError
from rtl433_exporter.ingestion.normalize import SampleNormalizer
from rtl433_exporter.ingestion.parser import LineProtocolParser
from rtl433_exporter.state.store import ReconcileResult, StateStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestOutcome:
    """Summary of one ingestion call."""

    records: int = 0
    result: ReconcileResult = ReconcileResult()
    parse_error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.parse_error is None


class Ingestor:
    """Parse, normalize and reconcile write payloads against a store."""

    def __init__(
        self,
        store: StateStore,
        normalizer: SampleNormalizer,
        *,
        parser: LineProtocolParser | None = None,
    ) -> None:
        self._store = store
        self._normalizer = normalizer
        self._parser = parser if parser is not None else LineProtocolParser(clock=store.clock)

    @property
    def store(self) -> StateStore:
        return self._store

    def ingest(self, body: str) -> IngestOutcome:
        if not body:
            _logger.debug("Empty write payload")
            return IngestOutcome()

        try:
            records = self._parser.parse(body)
        except ParseError as exc:
            # Nothing has touched the store yet; drop the whole payload.
            _logger.warning("Error parsing influx data: %s (line %r)", exc, exc.line)
            return IngestOutcome(parse_error=exc)

        outcomes = self._normalizer.normalize_all(records)
        result = self._store.reconcile(outcomes)
        _logger.debug(
            "Ingested %d record(s): %d applied, %d stale, %d discarded",
            len(records),
            result.applied,
            result.stale,
            result.discarded,
        )
        return IngestOutcome(records=len(records), result=result)
