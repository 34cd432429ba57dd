"""profilipy: MongoDB profiler to Prometheus exporter.

Samples ``system.profile`` in every application database and exposes one
gauge series per profiled operation.
"""

from profilipy.adapters.frameworks.asgi import create_asgi_app
from profilipy.adapters.mongo import MongoProfileSource
from profilipy.config import ExporterConfig
from profilipy.core.models import MetricFamily, MetricSample, QueryFact
from profilipy.core.processor import EntryProcessor
from profilipy.core.scanner import DatabaseScanner
from profilipy.core.state import IngestionState
from profilipy.runtime.poller import CleanupSweeper, PollLoop
from profilipy.runtime.service import ExporterService

__all__ = [
    "CleanupSweeper",
    "DatabaseScanner",
    "EntryProcessor",
    "ExporterConfig",
    "ExporterService",
    "IngestionState",
    "MetricFamily",
    "MetricSample",
    "MongoProfileSource",
    "PollLoop",
    "QueryFact",
    "create_asgi_app",
]
