"""Example FastAPI application embedding the profiler exporter.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /metrics                   - Prometheus text format (query series and self-metrics)
    /queries                   - NDJSON query facts, newest first
    /queries?since=<ts>        - Facts whose event time is after the timestamp
    /queries?database=<name>   - Facts from one database
    /queries?limit=<n>         - At most n facts

The exporter service runs in the application's lifespan, so the poll loop
and the cleanup sweeper start and stop with the web server. Settings come
from the same environment variables as the ``profilipy`` command.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from profilipy.adapters.frameworks.fastapi import create_exporter_router
from profilipy.adapters.logging import configure_logging
from profilipy.adapters.mongo import MongoProfileSource
from profilipy.adapters.storage import in_memory_state
from profilipy.config import ExporterConfig
from profilipy.runtime.service import ExporterService

config = ExporterConfig.from_env()
configure_logging(config.log_level)

state = in_memory_state(max_recent_queries=config.max_stored_queries)
service = ExporterService(MongoProfileSource(config.connection_uri), state, config)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    task = asyncio.create_task(service.run())
    try:
        yield
    finally:
        service.stop()
        await task


app = FastAPI(title="Profiler Exporter Example", lifespan=lifespan)
app.include_router(create_exporter_router(state))


@app.get("/")
async def root() -> dict[str, int]:
    """Summary of what the exporter currently holds."""
    return {"recent_queries": len(state.recent_queries())}
