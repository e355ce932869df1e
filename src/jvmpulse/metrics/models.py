"""Core data model: samples, snapshots, series keys and feed updates."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from jvmpulse._internal.types import Labels

__all__ = [
    "FeedUpdate",
    "SeriesKey",
    "SeriesPoint",
    "Snapshot",
    "Sample",
    "UpdateKind",
]


@dataclass(frozen=True)
class Sample:
    """One labeled measurement from an exposition payload.

    Attributes:
        name: Metric name, e.g. ``jvm_memory_bytes_used``.
        labels: Read-only label key/value pairs with quotes stripped.
        value: Parsed numeric value.
    """

    name: str
    labels: Labels = field(hash=False)
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def key(self) -> SeriesKey:
        """Return the canonical series identity of this sample."""
        return SeriesKey.of(self.name, self.labels)


@dataclass(frozen=True, order=True)
class SeriesKey:
    """Canonical identity of one time series.

    Labels are stored as a tuple of ``(key, value)`` pairs sorted by key,
    so the same logical series maps to the same key no matter how the
    exposition orders its labels.

    Attributes:
        metric: Metric name.
        labels: Sorted label pairs.
    """

    metric: str
    labels: tuple[tuple[str, str], ...] = ()

    @classmethod
    def of(cls, metric: str, labels: Labels | None = None) -> SeriesKey:
        """Build a key from a metric name and an unordered label mapping."""
        return cls(metric, tuple(sorted((labels or {}).items())))

    @property
    def label_dict(self) -> dict[str, str]:
        """Return the labels as a fresh dict."""
        return dict(self.labels)

    def __str__(self) -> str:
        if not self.labels:
            return self.metric
        rendered = ",".join(f'{k}="{v}"' for k, v in self.labels)
        return f"{self.metric}{{{rendered}}}"


@dataclass(frozen=True)
class SeriesPoint:
    """A single ``(timestamp, value)`` point in a rolling series."""

    timestamp: float
    value: float


def _freeze(
    metrics: Mapping[str, list[Sample] | tuple[Sample, ...]],
) -> Mapping[str, tuple[Sample, ...]]:
    return MappingProxyType({name: tuple(samples) for name, samples in metrics.items()})


@dataclass(frozen=True)
class Snapshot:
    """One fully parsed, timestamped observation of a target.

    Built by the scheduler on every successful fetch and never mutated
    afterwards: ``metrics`` and ``types`` are read-only mappings and
    every sample list is a tuple.

    Attributes:
        target: Id of the target the payload was fetched from.
        timestamp: Wall-clock time of the fetch, seconds since the epoch.
        metrics: Samples grouped by metric name, in exposition order.
        types: ``# TYPE`` declarations found in the payload.
    """

    target: str
    timestamp: float
    metrics: Mapping[str, tuple[Sample, ...]] = field(default_factory=dict)
    types: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", _freeze(self.metrics))
        object.__setattr__(self, "types", MappingProxyType(dict(self.types)))

    def samples(self, name: str) -> tuple[Sample, ...]:
        """Return the samples of ``name``, or an empty tuple."""
        return self.metrics.get(name, ())

    @property
    def sample_count(self) -> int:
        """Return the total number of samples across all metrics."""
        return sum(len(samples) for samples in self.metrics.values())


class UpdateKind(Enum):
    """What triggered a feed notification."""

    SNAPSHOT = auto()
    ERROR = auto()
    RESET = auto()


@dataclass(frozen=True)
class FeedUpdate:
    """Notification delivered to feed subscribers.

    Attributes:
        kind: Cause of the update.
        target: Target the update belongs to (None after a clear).
        snapshot: Latest snapshot at the time of the update, if any.
        error: Latest error message at the time of the update, if any.
    """

    kind: UpdateKind
    target: str | None
    snapshot: Snapshot | None = None
    error: str | None = None
