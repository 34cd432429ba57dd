"""FastAPI adapter for embedding the exporter endpoints in an existing app."""

from fastapi import APIRouter, Query, Response

from profilipy.adapters.frameworks.query_params import select_queries
from profilipy.core.encoding import ndjson, prometheus
from profilipy.core.state import IngestionState


def create_exporter_router(state: IngestionState) -> APIRouter:
    """Create a FastAPI router with /metrics and /queries endpoints.

    Args:
        state: Ingestion state to expose.

    Returns:
        APIRouter with /metrics and /queries endpoints configured.
    """
    router = APIRouter()

    @router.get("/metrics")
    async def get_metrics() -> Response:
        """Return metrics in Prometheus text format."""
        body = prometheus.encode_metrics(state.collect())
        return Response(content=body, media_type=prometheus.CONTENT_TYPE)

    @router.get("/queries")
    async def get_queries(
        since: float = Query(default=0, ge=0),
        database: str | None = Query(default=None),
        limit: int | None = Query(default=None, gt=0),
    ) -> Response:
        """Return recently processed queries in NDJSON format, newest first.

        Args:
            since: Unix timestamp. Returns queries whose event time is > since.
            database: Only return queries from this database.
            limit: Maximum number of queries returned.
        """
        facts = select_queries(
            state.recent_queries(), since=since, database=database, limit=limit
        )
        return Response(
            content=ndjson.encode_queries(facts),
            media_type=ndjson.CONTENT_TYPE,
        )

    return router
