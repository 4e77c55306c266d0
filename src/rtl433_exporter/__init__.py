"""rtl433_exporter - Prometheus exporter for rtl_433 sensor readings."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rtl433-exporter")
except PackageNotFoundError:
    __version__ = "0+local"
from rtl433_exporter.config import ExporterConfig
from rtl433_exporter.exceptions import ConfigError, ParseError, Rtl433Error
from rtl433_exporter.export import MetricKind, MetricPoint, Rtl433Collector, SnapshotExporter
from rtl433_exporter.ingestion.apply import IngestOutcome, Ingestor
from rtl433_exporter.ingestion.normalize import SampleNormalizer
from rtl433_exporter.ingestion.parser import LineProtocolParser, parse_lines
from rtl433_exporter.state.events import Discard, DiscardReason, RawRecord, ValidatedSample
from rtl433_exporter.state.store import ReconcileResult, StateStore, StoreSnapshot

__all__ = [
    "__version__",
    "ConfigError",
    "Discard",
    "DiscardReason",
    "ExporterConfig",
    "IngestOutcome",
    "Ingestor",
    "LineProtocolParser",
    "MetricKind",
    "MetricPoint",
    "ParseError",
    "RawRecord",
    "ReconcileResult",
    "Rtl433Collector",
    "Rtl433Error",
    "SampleNormalizer",
    "SnapshotExporter",
    "StateStore",
    "StoreSnapshot",
    "ValidatedSample",
    "parse_lines",
]
