"""NDJSON encoder for query facts."""

import json
from collections.abc import Iterable
from dataclasses import asdict

from profilipy.core.models import QueryFact

CONTENT_TYPE = "application/x-ndjson"


def encode_queries(facts: Iterable[QueryFact]) -> str:
    """Encode query facts to newline-delimited JSON.

    Args:
        facts: An iterable of QueryFact objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no facts.
    """
    lines = [json.dumps(asdict(fact)) for fact in facts]

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
