"""aiohttp application: influx writes in, Prometheus scrapes out."""

from __future__ import annotations

import logging
from datetime import timedelta

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from rtl433_exporter.config import ExporterConfig
from rtl433_exporter.export import Rtl433Collector, SnapshotExporter
from rtl433_exporter.ingestion.apply import Ingestor
from rtl433_exporter.ingestion.normalize import SampleNormalizer
from rtl433_exporter.state.store import StateStore

_logger = logging.getLogger(__name__)

INGESTOR_KEY: web.AppKey[Ingestor] = web.AppKey("ingestor", Ingestor)
REGISTRY_KEY: web.AppKey[CollectorRegistry] = web.AppKey("registry", CollectorRegistry)

routes = web.RouteTableDef()


@routes.post("/write")
@routes.post("/api/v2/write")
async def write(request: web.Request) -> web.Response:
    """Accept an rtl_433 influx write.

    Always acknowledges: the decoder cannot do anything useful with an
    error response, so parse problems are only logged.
    """
    if not request.can_read_body:
        _logger.info("No request body")
        return web.Response(status=200)

    try:
        body = await request.text()
    except (UnicodeDecodeError, LookupError):
        _logger.warning("Could not decode request body (charset %r)", request.charset)
        return web.Response(status=200)

    request.app[INGESTOR_KEY].ingest(body)
    return web.Response(status=200)


@routes.get("/metrics")
async def metrics(request: web.Request) -> web.Response:
    payload = generate_latest(request.app[REGISTRY_KEY])
    return web.Response(body=payload, headers={"Content-Type": CONTENT_TYPE_LATEST})


@routes.get("/health")
async def healthcheck(request: web.Request) -> web.Response:
    store = request.app[INGESTOR_KEY].store
    return web.json_response({"status": "ok", "areas": len(store.areas())})


def create_app(config: ExporterConfig, *, store: StateStore | None = None) -> web.Application:
    """Build the application and its store, ingestor and metrics registry."""
    if store is None:
        store = StateStore()

    area_map = config.resolved_area_map()
    _logger.info("Loaded %d area mapping(s)", len(area_map))

    ingestor = Ingestor(store, SampleNormalizer(area_map))
    exporter = SnapshotExporter(store, staleness=timedelta(seconds=config.staleness_seconds))

    registry = CollectorRegistry(auto_describe=True)
    registry.register(Rtl433Collector(exporter, namespace=config.namespace))

    app = web.Application()
    app[INGESTOR_KEY] = ingestor
    app[REGISTRY_KEY] = registry
    app.add_routes(routes)
    return app
