"""Shared test fixtures for all test modules."""

import pytest

from profilipy.adapters.storage import in_memory_state
from profilipy.core.processor import EntryProcessor
from profilipy.core.scanner import DatabaseScanner
from profilipy.core.state import IngestionState
from tests.fakes import FakeClock, FakeProfileSource

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock shared by the state under test."""
    return FakeClock()


@pytest.fixture
def state(clock: FakeClock) -> IngestionState:
    """Fresh ingestion state driven by the fake clock."""
    return in_memory_state(max_recent_queries=1000, clock=clock)


@pytest.fixture
def processor(state: IngestionState) -> EntryProcessor:
    """Entry processor with no ignored namespaces."""
    return EntryProcessor(state)


@pytest.fixture
def source() -> FakeProfileSource:
    """Empty fake profiler source."""
    return FakeProfileSource()


@pytest.fixture
def scanner(
    source: FakeProfileSource, processor: EntryProcessor, state: IngestionState
) -> DatabaseScanner:
    """Scanner wired to the fake source and shared state."""
    return DatabaseScanner(source, processor, state)


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture.

    Returns a tuple of (send_func, responses_list) for recording ASGI messages.
    """

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(state)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def asgi_client_with_state(state: IngestionState, asgi_test_client):
    """Fixture combining the ingestion state and an ASGI test client.

    Returns a tuple of (client, state) so tests can seed the state and
    then make requests.
    """
    from profilipy.adapters.frameworks.asgi import create_asgi_app

    app = create_asgi_app(state)
    async with asgi_test_client(app) as client:
        yield client, state
