"""Typed views over raw ``system.profile`` documents.

Profiler documents differ by operation: a ``find`` carries a filter, an
``update`` carries a filter plus an update document, a ``command`` carries
the command body. ``parse_operation`` picks the variant for a record so each
variant reads only the fields that belong to it.
"""

import hashlib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from profilipy.core.models import RecordIdentity
from profilipy.core.serialization import coerce_datetime, dumps_compact, epoch_millis

UNKNOWN = "unknown"

RawProfilingRecord = Mapping[str, Any]


def _first_present(raw: RawProfilingRecord, *names: str) -> Any:
    """Return the value of the first field that is set and not None."""
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class ProfiledOperation(ABC):
    """Base variant: the fields every operation kind may carry.

    Attributes:
        kind: The profiler ``op`` value, or "unknown".
        filter: The ``query`` (or ``filter``) document, if any.
        command: The ``command`` document, if any.
    """

    kind: str
    filter: Any = None
    command: Any = None

    @abstractmethod
    def payload(self) -> Any:
        """Return the operation-specific document to render."""

    def shape_source(self) -> Any:
        """Return the document the query-shape fingerprint is built from."""
        if isinstance(self.filter, Mapping):
            return self.filter
        if self.command:
            return self.command
        return None


@dataclass(frozen=True)
class QueryOperation(ProfiledOperation):
    def payload(self) -> Any:
        return self.filter if self.filter is not None else {}


@dataclass(frozen=True)
class UpdateOperation(ProfiledOperation):
    update: Any = None

    def payload(self) -> Any:
        return {
            "query": self.filter if self.filter is not None else {},
            "update": self.update if self.update is not None else {},
        }


@dataclass(frozen=True)
class InsertOperation(ProfiledOperation):
    document: Any = None

    def payload(self) -> Any:
        return self.document if self.document is not None else {}


@dataclass(frozen=True)
class CommandOperation(ProfiledOperation):
    def payload(self) -> Any:
        return self.command if self.command is not None else {}


@dataclass(frozen=True)
class OtherOperation(ProfiledOperation):
    """Any other kind; the whole record is its payload."""

    record: Any = None

    def payload(self) -> Any:
        return self.record


def parse_operation(raw: RawProfilingRecord) -> ProfiledOperation:
    """Build the operation variant matching a record's ``op`` field."""
    op = raw.get("op")
    kind = str(op) if op else UNKNOWN
    common = {
        "kind": kind,
        "filter": _first_present(raw, "query", "filter"),
        "command": raw.get("command"),
    }
    if kind in ("query", "find"):
        return QueryOperation(**common)
    if kind == "update":
        return UpdateOperation(**common, update=_first_present(raw, "updateObj", "u"))
    if kind == "insert":
        return InsertOperation(**common, document=raw.get("o"))
    if kind in ("command", "getmore"):
        return CommandOperation(**common)
    return OtherOperation(**common, record=raw)


def split_namespace(ns: Any) -> tuple[str, str]:
    """Split ``database.collection`` on the first dot.

    Collection names may themselves contain dots. Missing parts become
    "unknown".
    """
    if not isinstance(ns, str):
        return UNKNOWN, UNKNOWN
    database, _, collection = ns.partition(".")
    return database or UNKNOWN, collection or UNKNOWN


def _content_digest(raw: RawProfilingRecord) -> str:
    try:
        text = dumps_compact(raw)
    except (TypeError, ValueError):
        text = repr(raw)
    return hashlib.sha1(text.encode("utf-8", errors="replace")).hexdigest()[:16]


def record_identity(raw: RawProfilingRecord) -> RecordIdentity:
    """Derive the dedup key of a record from its queryHash and timestamp.

    Records without a usable ``ts`` fall back to a digest of their content,
    which keeps the key stable across polls of the same stored document.
    """
    query_hash = raw.get("queryHash")
    moment = coerce_datetime(raw.get("ts"))
    if moment is not None:
        event = str(epoch_millis(moment))
    else:
        event = "nots" + _content_digest(raw)
    return RecordIdentity(
        query_hash="none" if query_hash is None else str(query_hash),
        event=event,
    )
