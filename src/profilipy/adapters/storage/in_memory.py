"""In-memory storage adapter for labeled metric series."""

from collections.abc import Iterable, Mapping

from profilipy.core.models import MetricSample


class InMemoryMetricStore:
    """In-memory implementation of MetricsStoragePort for one gauge family.

    Series are keyed by their label values in ``label_names`` order, so
    setting the same label set twice overwrites the previous value.

    Args:
        name: Metric name given to every scraped sample.
        label_names: Label names every series must carry.
    """

    def __init__(self, name: str, label_names: Iterable[str]) -> None:
        self.name = name
        self.label_names = tuple(label_names)
        self._series: dict[tuple[str, ...], float] = {}

    def _key(self, labels: Mapping[str, str]) -> tuple[str, ...]:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"labels {sorted(labels)} do not match {list(self.label_names)}"
            )
        return tuple(str(labels[name]) for name in self.label_names)

    def set(self, labels: Mapping[str, str], value: float) -> None:
        """Create or overwrite the series identified by ``labels``."""
        self._series[self._key(labels)] = value

    def remove(self, **match: str) -> int:
        """Remove every series whose labels include all of ``match``.

        Returns:
            Number of series removed.
        """
        positions = []
        for label, value in match.items():
            if label not in self.label_names:
                raise ValueError(f"unknown label {label!r}")
            positions.append((self.label_names.index(label), value))
        doomed = [
            key
            for key in self._series
            if all(key[index] == value for index, value in positions)
        ]
        for key in doomed:
            del self._series[key]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._series)

    def scrape(self) -> Iterable[MetricSample]:
        """Scrape all current metric samples."""
        for key, value in list(self._series.items()):
            yield MetricSample(
                name=self.name,
                value=value,
                labels=dict(zip(self.label_names, key, strict=True)),
            )
