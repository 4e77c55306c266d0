"""Command line entry point.

Usage
-----
Configure with ``RTL433_*`` environment variables or flags and point
rtl_433 at the exporter::

    rtl433-exporter --port 9550 --area 15680=kitchen --area 9001=garage
    rtl_433 -F "influx://localhost:9550/write?db=rtl433"

Then scrape ``http://localhost:9550/metrics``.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from aiohttp import web

from rtl433_exporter import __version__
from rtl433_exporter.config import ExporterConfig, parse_area_map
from rtl433_exporter.exceptions import ConfigError
from rtl433_exporter.server import create_app

_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtl433-exporter",
        description="Prometheus exporter for rtl_433 influx line-protocol writes.",
    )
    parser.add_argument("--host", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 9550)")
    parser.add_argument(
        "--area",
        action="append",
        default=[],
        metavar="ID=NAME",
        help="Map a device id to an area name (repeatable)",
    )
    parser.add_argument("--area-map-file", help="JSON object of device id to area name")
    parser.add_argument("--staleness", type=float, help="Seconds before gauges for an area are dropped")
    parser.add_argument("--namespace", help="Metric name prefix (default: rtl)")
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ExporterConfig:
    area_map = parse_area_map(",".join(args.area)) if args.area else None
    return ExporterConfig.from_env(
        host=args.host,
        port=args.port,
        area_map=area_map,
        area_map_file=args.area_map_file,
        staleness_seconds=args.staleness,
        namespace=args.namespace,
        log_level="DEBUG" if args.verbose else None,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ConfigError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        app = create_app(config)
    except ConfigError as exc:
        parser.error(str(exc))

    _logger.info("Listening on %s:%d", config.host, config.port)

    web.run_app(
        app,
        host=config.host,
        port=config.port,
        access_log=logging.getLogger("aiohttp.access") if config.access_log else None,
        print=None,
    )
    return 0
