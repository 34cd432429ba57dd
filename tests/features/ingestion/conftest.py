"""BDD step definitions for profiler ingestion."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from profilipy.adapters.storage import in_memory_state
from profilipy.core.processor import EntryProcessor
from profilipy.core.scanner import DatabaseScanner
from profilipy.runtime.poller import CleanupSweeper, PollLoop
from tests.fakes import FakeClock, FakeProfileSource, profile_entry

TTL = 3600.0


@dataclass
class IngestionScenarioContext:
    """Shared state between steps in an ingestion scenario."""

    clock: FakeClock = field(default_factory=FakeClock)
    source: FakeProfileSource = field(default_factory=FakeProfileSource)
    state: Any = None
    poller: Any = None

    def series(self, identity: str) -> dict[str, str] | None:
        for sample in self.state.collect()[0].samples:
            if sample.labels["query_id"] == identity:
                return sample.labels
        return None


@pytest.fixture
def ctx() -> IngestionScenarioContext:
    """Fresh scenario context for each test."""
    return IngestionScenarioContext()


# === Background Steps ===
@given("a profiler source")
def step_source(ctx: IngestionScenarioContext) -> None:
    ctx.source = FakeProfileSource()


@given(parsers.parse('an ingestion engine ignoring "{namespace}"'))
def step_engine(ctx: IngestionScenarioContext, namespace: str) -> None:
    ctx.state = in_memory_state(clock=ctx.clock)
    processor = EntryProcessor(ctx.state, ignored_namespaces={namespace})
    scanner = DatabaseScanner(ctx.source, processor, ctx.state)
    ctx.poller = PollLoop(ctx.source, scanner, interval=10)


# === Given Steps ===
@given(
    parsers.parse(
        'database "{database}" has a query on "{collection}" '
        'taking {millis:d} ms with hash "{query_hash}"'
    )
)
def step_profiled_query(
    ctx: IngestionScenarioContext,
    database: str,
    collection: str,
    millis: int,
    query_hash: str,
) -> None:
    ctx.source.profiles.setdefault(database, []).append(
        profile_entry(
            ns=f"{database}.{collection}", millis=millis, queryHash=query_hash
        )
    )


# === When Steps ===
@when("the engine polls once")
def step_poll(ctx: IngestionScenarioContext) -> None:
    asyncio.run(ctx.poller.run_once())


@when(parsers.parse("{seconds:d} seconds pass"))
def step_time_passes(ctx: IngestionScenarioContext, seconds: int) -> None:
    ctx.clock.advance(seconds)


@when("the cleanup sweeper runs")
def step_sweep(ctx: IngestionScenarioContext) -> None:
    CleanupSweeper(ctx.state, ttl=TTL, interval=300).sweep()


# === Then Steps ===
@then(parsers.re(r"(?P<count>\d+) query facts? (?:is|are) recorded"))
def step_fact_count(ctx: IngestionScenarioContext, count: str) -> None:
    assert len(ctx.state.recent_queries()) == int(count)


@then(
    parsers.parse(
        'the series "{identity}" has label "{label}" equal to "{value}"'
    )
)
def step_series_label(
    ctx: IngestionScenarioContext, identity: str, label: str, value: str
) -> None:
    labels = ctx.series(identity)
    assert labels is not None
    assert labels[label] == value


@then(parsers.parse('there is no series "{identity}"'))
def step_no_series(ctx: IngestionScenarioContext, identity: str) -> None:
    assert ctx.series(identity) is None


@then(parsers.parse('database "{database}" was not read'))
def step_not_read(ctx: IngestionScenarioContext, database: str) -> None:
    assert database not in ctx.source.read_databases
