"""Exporter configuration read once from the environment at startup.

Every setting has a default. Missing, malformed or out-of-range values fall
back to that default with a warning; loading configuration never fails.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote_plus, urlsplit, urlunsplit

from dotenv import load_dotenv

from profilipy.runtime.poller import DEFAULT_SYSTEM_DATABASES

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2233
DEFAULT_POLLING_INTERVAL_MS = 10_000
DEFAULT_METRIC_TTL_MS = 3_600_000
DEFAULT_CLEANUP_INTERVAL_MS = 300_000
DEFAULT_MAX_STORED_QUERIES = 1000
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Read a positive integer, falling back to ``default``."""
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %d", name, raw, default)
        return default
    return value


def _parse_list(env: Mapping[str, str], name: str) -> tuple[str, ...] | None:
    """Read a comma-separated list, dropping blank items.

    Returns:
        The items, or None when the variable is not set.
    """
    if name not in env:
        return None
    return tuple(item.strip() for item in env[name].split(",") if item.strip())


def _parse_log_level(env: Mapping[str, str]) -> str:
    raw = env.get("LOG_LEVEL", "").strip().upper()
    if raw in VALID_LOG_LEVELS:
        return raw
    if raw:
        logger.warning("Ignoring invalid LOG_LEVEL=%r, using INFO", raw)
    return "INFO"


def redact_uri(uri: str) -> str:
    """Hide the password of a connection URI for logging."""
    try:
        parts = urlsplit(uri)
    except ValueError:
        return "<unparsable uri>"
    if parts.password is None:
        return uri
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


@dataclass(frozen=True)
class ExporterConfig:
    """Runtime settings of the exporter.

    Intervals and the time-to-live are stored in seconds; the environment
    expresses them in milliseconds.
    """

    mongo_uri: str = ""
    mongo_username: str = ""
    mongo_password: str = ""
    mongo_host: str = "mongodb"
    mongo_port: str = "27017"
    ignored_collections: frozenset[str] = frozenset()
    system_databases: tuple[str, ...] = DEFAULT_SYSTEM_DATABASES
    polling_interval: float = DEFAULT_POLLING_INTERVAL_MS / 1000
    metric_ttl: float = DEFAULT_METRIC_TTL_MS / 1000
    cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_MS / 1000
    max_stored_queries: int = DEFAULT_MAX_STORED_QUERIES
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def connection_uri(self) -> str:
        """The URI handed to the driver.

        ``MONGO_URI`` wins when set; otherwise the URI is assembled from
        host, port and the optional credentials.
        """
        if self.mongo_uri:
            return self.mongo_uri
        credentials = ""
        if self.mongo_username:
            credentials = (
                f"{quote_plus(self.mongo_username)}:"
                f"{quote_plus(self.mongo_password)}@"
            )
        return f"mongodb://{credentials}{self.mongo_host}:{self.mongo_port}/"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExporterConfig":
        """Build the configuration from environment variables.

        Args:
            environ: Variables to read. Defaults to ``os.environ`` after
                loading a ``.env`` file from the working directory, if any.
        """
        if environ is None:
            load_dotenv(".env")
            environ = os.environ
        env = environ

        system_databases = _parse_list(env, "SYSTEM_DATABASES")
        return cls(
            mongo_uri=env.get("MONGO_URI", "").strip(),
            mongo_username=env.get("MONGO_USERNAME", ""),
            mongo_password=env.get("MONGO_PASSWORD", ""),
            mongo_host=env.get("MONGO_HOST", "").strip() or "mongodb",
            mongo_port=env.get("MONGO_PORT", "").strip() or "27017",
            ignored_collections=frozenset(
                _parse_list(env, "IGNORED_COLLECTIONS") or ()
            ),
            system_databases=(
                DEFAULT_SYSTEM_DATABASES
                if system_databases is None
                else system_databases
            ),
            polling_interval=_parse_positive_int(
                env, "POLLING_INTERVAL_MS", DEFAULT_POLLING_INTERVAL_MS
            )
            / 1000,
            metric_ttl=_parse_positive_int(env, "METRIC_TTL_MS", DEFAULT_METRIC_TTL_MS)
            / 1000,
            cleanup_interval=_parse_positive_int(
                env, "CLEANUP_INTERVAL_MS", DEFAULT_CLEANUP_INTERVAL_MS
            )
            / 1000,
            max_stored_queries=_parse_positive_int(
                env, "MAX_STORED_QUERIES", DEFAULT_MAX_STORED_QUERIES
            ),
            host=env.get("HOST", "").strip() or "0.0.0.0",
            port=_parse_port(env),
            log_level=_parse_log_level(env),
        )


def _parse_port(env: Mapping[str, str]) -> int:
    port = _parse_positive_int(env, "PORT", DEFAULT_PORT)
    if port > 65535:
        logger.warning("Ignoring out-of-range PORT=%d, using %d", port, DEFAULT_PORT)
        return DEFAULT_PORT
    return port
