"""Process entry point: serve /metrics while polling the profiler.

Run with:
    profilipy
    python -m profilipy

Configuration comes from environment variables (and an optional ``.env``
file); see ``profilipy.config``. The process exits with status 1 when the
initial database connection fails, so a supervisor can restart it.
"""

import asyncio
import logging
import sys

import uvicorn

from profilipy.adapters.frameworks.asgi import create_asgi_app
from profilipy.adapters.logging import configure_logging
from profilipy.adapters.mongo import MongoProfileSource
from profilipy.adapters.storage import in_memory_state
from profilipy.config import ExporterConfig, redact_uri
from profilipy.core.ports import ProfileSourcePort
from profilipy.runtime.service import ExporterService

logger = logging.getLogger(__name__)


async def serve(
    config: ExporterConfig, source: ProfileSourcePort | None = None
) -> None:
    """Run the HTTP server and the exporter service until either stops.

    Raises:
        Exception: Whatever made the exporter service fail, typically the
            initial connection to MongoDB.
    """
    state = in_memory_state(max_recent_queries=config.max_stored_queries)
    if source is None:
        source = MongoProfileSource(config.connection_uri)
    service = ExporterService(source, state, config)

    server = uvicorn.Server(
        uvicorn.Config(
            create_asgi_app(state),
            host=config.host,
            port=config.port,
            log_config=None,
            access_log=False,
        )
    )
    logger.info(
        "Metrics server listening on port %d", config.port, extra={"host": config.host}
    )
    server_task = asyncio.create_task(server.serve())
    service_task = asyncio.create_task(service.run())

    await asyncio.wait(
        {server_task, service_task}, return_when=asyncio.FIRST_COMPLETED
    )
    service.stop()
    server.should_exit = True
    await server_task
    await service_task


def main() -> int:
    config = ExporterConfig.from_env()
    configure_logging(config.log_level)
    logger.info("MongoDB configuration: %s", redact_uri(config.connection_uri))
    if config.ignored_collections:
        logger.info(
            "Ignoring collections: %s", ", ".join(sorted(config.ignored_collections))
        )

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
    except Exception:
        logger.exception("Error in query monitoring")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
