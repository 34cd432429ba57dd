"""Plain ASGI application serving the exporter endpoints.

This is the app the ``profilipy`` command hands to uvicorn. It needs no web
framework; ``profilipy.adapters.frameworks.fastapi`` offers the same
endpoints as a router for applications that already run FastAPI.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from profilipy.adapters.frameworks.query_params import (
    _parse_database_param,
    _parse_limit_param,
    _parse_since_param,
    select_queries,
)
from profilipy.core.encoding import ndjson, prometheus
from profilipy.core.state import IngestionState

logger = logging.getLogger(__name__)

Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Decode the request's query string; undecodable bytes are replaced."""
    raw = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(raw)


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Write a complete response in one start message and one body message."""
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [(b"content-type", content_type.encode())],
        }
    )
    await send({"type": "http.response.body", "body": body.encode()})


async def _render(
    send: Send, render: Callable[[], str], content_type: str, failure: str
) -> None:
    """Send the body built by ``render``, or a JSON 500 if building it fails.

    ``failure`` is logged with the traceback; the client only sees a
    generic error.
    """
    try:
        body = render()
    except Exception:
        logger.exception(failure)
        await _send_response(
            send,
            500,
            "application/json",
            json.dumps({"error": "Internal Server Error"}),
        )
        return
    await _send_response(send, 200, content_type, body)


def create_asgi_app(state: IngestionState) -> ASGIApp:
    """Create an ASGI app with /metrics and /queries endpoints.

    Args:
        state: Ingestion state to expose. Each request renders a fresh
            snapshot; nothing is cached between requests.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path == "/metrics":
            await _render(
                send,
                lambda: prometheus.encode_metrics(state.collect()),
                prometheus.CONTENT_TYPE,
                "Failed to render /metrics",
            )
        elif path == "/queries":
            params = _parse_query_params(scope)
            since = _parse_since_param(params)
            database = _parse_database_param(params)
            limit = _parse_limit_param(params)
            await _render(
                send,
                lambda: ndjson.encode_queries(
                    select_queries(
                        state.recent_queries(),
                        since=since,
                        database=database,
                        limit=limit,
                    )
                ),
                ndjson.CONTENT_TYPE,
                "Failed to render /queries",
            )
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app


async def _handle_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge lifespan startup and shutdown; the app holds no resources."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return
