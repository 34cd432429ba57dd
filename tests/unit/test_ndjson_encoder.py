"""Tests for the NDJSON query fact encoder."""

import json

import pytest

from profilipy.core.encoding.ndjson import encode_queries
from profilipy.core.models import QueryFact


def _fact(identity: str, **fields) -> QueryFact:
    values = {
        "timestamp": "2024-01-01T12:00:00.000Z",
        "database": "shop",
        "collection": "orders",
        "operation": "query",
        "query": '{"status":"A"}',
    }
    values.update(fields)
    return QueryFact(id=identity, **values)


class TestNdjsonEncoder:
    """Tests for NDJSON encoding of query facts."""

    @pytest.mark.encoding
    def test_encode_single_fact(self) -> None:
        """A single fact encodes to one JSON line with every field."""
        result = encode_queries([_fact("h-1", millis=42)])

        parsed = json.loads(result.strip())
        assert parsed["id"] == "h-1"
        assert parsed["database"] == "shop"
        assert parsed["millis"] == 42
        assert parsed["plan_summary"] == "N/A"
        assert parsed["cursor_exhausted"] is False

    @pytest.mark.encoding
    def test_encode_multiple_facts(self) -> None:
        """Facts are newline-delimited in the given order."""
        result = encode_queries([_fact("a"), _fact("b")])

        lines = result.strip().split("\n")
        assert [json.loads(line)["id"] for line in lines] == ["a", "b"]

    @pytest.mark.encoding
    def test_encode_empty(self) -> None:
        """No facts encode to an empty string."""
        assert encode_queries([]) == ""

    @pytest.mark.encoding
    def test_output_ends_with_newline(self) -> None:
        """Non-empty output ends with a newline."""
        assert encode_queries([_fact("a")]).endswith("\n")

    @pytest.mark.encoding
    def test_embedded_newlines_are_escaped(self) -> None:
        """Multi-line execution plans stay on one line."""
        result = encode_queries([_fact("a", execution_plan='{\n  "stage": "IXSCAN"\n}')])

        assert result.count("\n") == 1
        assert json.loads(result)["execution_plan"].startswith("{\n")
