"""HTTP endpoint serving the metrics page."""

import asyncio
import logging
from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from . import __version__
from .collectors.kstat import StatReader, collect_cpu_metrics
from .collectors.zpool import ZPOOL_LIST_COMMAND, ZPOOL_TIMEOUT_SECONDS, collect_zpool_metrics
from .errors import CollectionError
from .exposition import CONTENT_TYPE, assemble

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def collect_all(
    stat_reader: Optional[StatReader] = None,
    zpool_command: Sequence[str] = ZPOOL_LIST_COMMAND,
    zpool_timeout: float = ZPOOL_TIMEOUT_SECONDS,
) -> str:
    """
    Run one full collection cycle: CPU kstats first, then pools.

    The kstat read blocks, so it runs in a worker thread to keep other
    requests moving.
    """
    cpu_metrics = await asyncio.to_thread(collect_cpu_metrics, stat_reader)
    zpool_metrics = await collect_zpool_metrics(zpool_command, zpool_timeout)
    return assemble(cpu_metrics, zpool_metrics)


def create_app(
    stat_reader: Optional[StatReader] = None,
    zpool_command: Sequence[str] = ZPOOL_LIST_COMMAND,
    zpool_timeout: float = ZPOOL_TIMEOUT_SECONDS,
) -> FastAPI:
    """
    Build the exporter application.

    Every path and method returns a freshly collected metrics page.

    Args:
        stat_reader: kstat source (default: KstatReader per request)
        zpool_command: zpool invocation
        zpool_timeout: Seconds to wait for zpool
    """
    app = FastAPI(
        title="gz-exporter",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.exception_handler(CollectionError)
    async def collection_error_handler(request: Request, exc: CollectionError):
        logger.error(f"Collection failed for {request.method} {request.url.path}: {exc}")
        return PlainTextResponse(f"collection failed: {exc}\n", status_code=500)

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def get_metrics(path: str) -> PlainTextResponse:
        body = await collect_all(stat_reader, zpool_command, zpool_timeout)
        return PlainTextResponse(body, media_type=CONTENT_TYPE)

    return app
