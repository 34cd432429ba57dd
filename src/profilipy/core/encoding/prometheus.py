"""Prometheus text format encoder for metric families."""

import math
from collections.abc import Iterable

from profilipy.core.models import MetricFamily, MetricSample

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_value(value: float) -> str:
    """Format a sample value (1 not 1.0, special floats spelled out)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _format_labels(labels: dict[str, str]) -> str:
    if not labels:
        return ""
    pairs = ",".join(
        f'{name}="{_escape_label_value(str(value))}"' for name, value in labels.items()
    )
    return "{" + pairs + "}"


def encode_sample(sample: MetricSample) -> str:
    """Encode one sample as an exposition line (without newline)."""
    return f"{sample.name}{_format_labels(sample.labels)} {_format_value(sample.value)}"


def encode_metrics(families: Iterable[MetricFamily]) -> str:
    """Encode metric families to Prometheus text format.

    Args:
        families: Families to expose. Each gets HELP and TYPE lines, even
            when it currently holds no samples.

    Returns:
        Exposition text ending in a newline, or an empty string when there
        are no families.
    """
    lines: list[str] = []
    for family in families:
        lines.append(f"# HELP {family.name} {_escape_help(family.help)}")
        lines.append(f"# TYPE {family.name} {family.type}")
        lines.extend(encode_sample(sample) for sample in family.samples)

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
