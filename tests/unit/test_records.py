"""Tests for operation variants, namespaces and record identities."""

from datetime import datetime

import pytest

from profilipy.core.records import (
    CommandOperation,
    InsertOperation,
    OtherOperation,
    ProfiledOperation,
    QueryOperation,
    UpdateOperation,
    parse_operation,
    record_identity,
    split_namespace,
)


class TestParseOperation:
    """Tests for parse_operation() variant selection and payloads."""

    @pytest.mark.core
    @pytest.mark.parametrize("op", ["query", "find"])
    def test_query_kinds_use_the_filter(self, op: str) -> None:
        """Reads render their filter document."""
        operation = parse_operation({"op": op, "query": {"status": "A"}})
        assert isinstance(operation, QueryOperation)
        assert operation.payload() == {"status": "A"}

    @pytest.mark.core
    def test_query_falls_back_to_filter_field(self) -> None:
        """The filter field is read when query is absent."""
        operation = parse_operation({"op": "query", "filter": {"sku": 1}})
        assert operation.payload() == {"sku": 1}

    @pytest.mark.core
    def test_query_without_filter_renders_empty_document(self) -> None:
        """A read without any filter renders {}."""
        assert parse_operation({"op": "query"}).payload() == {}

    @pytest.mark.core
    def test_update_pairs_query_and_update(self) -> None:
        """Updates render the filter together with the update document."""
        operation = parse_operation(
            {"op": "update", "query": {"_id": 1}, "updateObj": {"$set": {"a": 2}}}
        )
        assert isinstance(operation, UpdateOperation)
        assert operation.payload() == {
            "query": {"_id": 1},
            "update": {"$set": {"a": 2}},
        }

    @pytest.mark.core
    def test_update_reads_short_update_field(self) -> None:
        """The ``u`` field is used when updateObj is absent."""
        operation = parse_operation({"op": "update", "u": {"$inc": {"n": 1}}})
        assert operation.payload() == {"query": {}, "update": {"$inc": {"n": 1}}}

    @pytest.mark.core
    def test_insert_renders_inserted_document(self) -> None:
        """Inserts render the ``o`` document."""
        operation = parse_operation({"op": "insert", "o": {"name": "x"}})
        assert isinstance(operation, InsertOperation)
        assert operation.payload() == {"name": "x"}

    @pytest.mark.core
    @pytest.mark.parametrize("op", ["command", "getmore"])
    def test_command_kinds_render_command_body(self, op: str) -> None:
        """Commands and getMores render the command body."""
        operation = parse_operation({"op": op, "command": {"count": "orders"}})
        assert isinstance(operation, CommandOperation)
        assert operation.payload() == {"count": "orders"}

    @pytest.mark.core
    def test_unknown_kind_renders_whole_record(self) -> None:
        """Other kinds render the full document."""
        record = {"op": "remove", "ns": "shop.orders"}
        operation = parse_operation(record)
        assert isinstance(operation, OtherOperation)
        assert operation.kind == "remove"
        assert operation.payload() == record

    @pytest.mark.core
    def test_missing_op_is_unknown(self) -> None:
        """Records without op get kind 'unknown'."""
        assert parse_operation({}).kind == "unknown"

    @pytest.mark.core
    def test_base_variant_cannot_be_built(self) -> None:
        """Only concrete variants render a payload."""
        with pytest.raises(TypeError):
            ProfiledOperation(kind="query")  # type: ignore[abstract]


class TestShapeSource:
    """Tests for the query-shape source of each variant."""

    @pytest.mark.core
    def test_filter_wins_over_command(self) -> None:
        """A filter document is preferred when present."""
        operation = parse_operation(
            {"op": "command", "query": {"a": 1}, "command": {"find": "x"}}
        )
        assert operation.shape_source() == {"a": 1}

    @pytest.mark.core
    def test_command_is_used_without_filter(self) -> None:
        """The command body is used when there is no filter."""
        operation = parse_operation({"op": "insert", "command": {"insert": "x"}})
        assert operation.shape_source() == {"insert": "x"}

    @pytest.mark.core
    def test_no_shape_source(self) -> None:
        """Records with neither filter nor command have no shape."""
        assert parse_operation({"op": "insert", "o": {"a": 1}}).shape_source() is None


class TestSplitNamespace:
    """Tests for split_namespace()."""

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("ns", "expected"),
        [
            ("shop.orders", ("shop", "orders")),
            ("shop.orders.archive", ("shop", "orders.archive")),
            ("shop", ("shop", "unknown")),
            ("", ("unknown", "unknown")),
            (None, ("unknown", "unknown")),
            (42, ("unknown", "unknown")),
        ],
    )
    def test_split(self, ns: object, expected: tuple[str, str]) -> None:
        """Namespaces split on the first dot with unknown defaults."""
        assert split_namespace(ns) == expected


class TestRecordIdentity:
    """Tests for record_identity()."""

    @pytest.mark.core
    def test_identity_combines_hash_and_millis(self) -> None:
        """The key is '<queryHash>-<epoch millis>'."""
        identity = record_identity(
            {"queryHash": "ABCD1234", "ts": datetime(2024, 1, 1, 12, 0)}
        )
        assert identity.key == "ABCD1234-1704110400000"

    @pytest.mark.core
    def test_missing_hash_reads_none(self) -> None:
        """Records without queryHash use 'none'."""
        identity = record_identity({"ts": {"$date": 1704110400000}})
        assert identity.key == "none-1704110400000"

    @pytest.mark.core
    def test_missing_timestamp_uses_stable_digest(self) -> None:
        """Records without ts get the same key on every read."""
        first = record_identity({"op": "query", "ns": "shop.orders"})
        second = record_identity({"op": "query", "ns": "shop.orders"})
        other = record_identity({"op": "query", "ns": "shop.users"})

        assert first == second
        assert first.event.startswith("nots")
        assert first != other
