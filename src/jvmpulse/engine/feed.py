"""Snapshot distribution and per-target series ingestion.

``MetricsFeed`` is the single owner of the rolling windows and counter
state of the observed target. Consumers register the series they chart
with ``track()``, subscribe for notifications, and read copies of the
latest snapshot and windows. Nothing a consumer receives can write back
into the feed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from jvmpulse._internal.logging import get_logger
from jvmpulse.metrics.models import FeedUpdate, UpdateKind
from jvmpulse.metrics.rates import MetricKind, RateDeriver, classify
from jvmpulse.metrics.store import DEFAULT_CAPACITY, SeriesStore

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from jvmpulse._internal.types import LabelPredicate
    from jvmpulse.metrics.models import Sample, SeriesKey, SeriesPoint, Snapshot

logger = get_logger("engine.feed")


@dataclass(frozen=True)
class TrackedSeries:
    """A metric whose samples should be kept as rolling series.

    Every label combination of the metric that passes ``predicate``
    becomes its own series. When ``name`` has no matching sample in a
    snapshot, the ``fallbacks`` are tried in order.

    Attributes:
        name: Preferred metric name.
        fallbacks: Alternative names for other exporter generations.
        predicate: Optional label filter.
        kind: Force counter or gauge handling instead of classifying by
            ``# TYPE`` declaration and naming convention.
    """

    name: str
    fallbacks: tuple[str, ...] = ()
    predicate: LabelPredicate | None = None
    kind: MetricKind | None = None

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.fallbacks)

    def resolve(self, metrics: Mapping[str, Sequence[Sample]]) -> tuple[str, list[Sample]]:
        """Return the first name with matching samples and those samples."""
        for name in self.names:
            matched = [
                s
                for s in metrics.get(name) or ()
                if self.predicate is None or self.predicate(s.labels)
            ]
            if matched:
                return name, matched
        return self.name, []


class MetricsFeed:
    """Latest-value cells plus rolling series for the selected target.

    Publishing a snapshot appends one point per tracked series: gauges
    keep their raw value, counters are turned into the increase since the
    previous snapshot. A series is ingested once per snapshot even when
    several consumers track it.

    Errors leave the previous snapshot and all series in place, so
    consumers keep showing stale data next to the error message.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize an empty feed.

        Args:
            capacity: Maximum points kept per series.
        """
        self._store = SeriesStore(capacity)
        self._rates = RateDeriver()
        self._tracked: list[TrackedSeries] = []
        self._subscribers: list[Callable[[FeedUpdate], None]] = []
        self._target: str | None = None
        self._snapshot: Snapshot | None = None
        self._error: str | None = None

    @property
    def target(self) -> str | None:
        """Return the target the feed currently belongs to."""
        return self._target

    @property
    def snapshot(self) -> Snapshot | None:
        """Return the latest published snapshot, or None."""
        return self._snapshot

    @property
    def error(self) -> str | None:
        """Return the latest fetch error message, or None."""
        return self._error

    @property
    def capacity(self) -> int:
        """Return the number of points kept per series."""
        return self._store.capacity

    @property
    def tracked(self) -> tuple[TrackedSeries, ...]:
        """Return the registered series, in registration order."""
        return tuple(self._tracked)

    def track(self, series: TrackedSeries) -> TrackedSeries:
        """Register a metric to keep as rolling series.

        Registering an equal ``TrackedSeries`` twice has no effect.
        """
        if series not in self._tracked:
            self._tracked.append(series)
        return series

    def subscribe(self, callback: Callable[[FeedUpdate], None]) -> Callable[[], None]:
        """Register ``callback`` for every future update.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def reset(self, target: str | None = None) -> None:
        """Discard everything held for the previous target.

        Args:
            target: Target the feed belongs to from now on, or None when
                the selection was cleared.
        """
        self._store.clear()
        self._rates.reset()
        self._snapshot = None
        self._error = None
        self._target = target
        logger.debug("Feed reset for target %s", target)
        self._notify(FeedUpdate(UpdateKind.RESET, target))

    def publish(self, snapshot: Snapshot) -> None:
        """Ingest ``snapshot`` and make it the latest.

        A feed without a target adopts the snapshot's target. A snapshot
        for any other target is stale and dropped.
        """
        if self._target is None:
            self.reset(snapshot.target)
        elif snapshot.target != self._target:
            logger.debug(
                "Dropping snapshot for target %s (feed belongs to %s)",
                snapshot.target,
                self._target,
            )
            return

        self._ingest(snapshot)
        self._snapshot = snapshot
        self._error = None
        self._notify(FeedUpdate(UpdateKind.SNAPSHOT, snapshot.target, snapshot))

    def publish_error(self, target: str, message: str) -> None:
        """Record a failed fetch for ``target``.

        Errors for a target other than the current one are ignored.
        """
        if target != self._target:
            logger.debug("Dropping error for target %s: %s", target, message)
            return
        self._error = message
        self._notify(FeedUpdate(UpdateKind.ERROR, target, self._snapshot, message))

    def window(self, key: SeriesKey) -> list[SeriesPoint]:
        """Return a copy of one series, oldest point first."""
        return self._store.window(key)

    def windows(self, metric: str) -> dict[SeriesKey, list[SeriesPoint]]:
        """Return a copy of every series of ``metric``, keyed by SeriesKey."""
        return {key: self._store.window(key) for key in self._store.keys(metric)}

    def keys(self, metric: str | None = None) -> list[SeriesKey]:
        return self._store.keys(metric)

    def _ingest(self, snapshot: Snapshot) -> None:
        seen: set[SeriesKey] = set()
        for tracked in self._tracked:
            name, samples = tracked.resolve(snapshot.metrics)
            if not samples:
                continue
            kind = classify(name, snapshot.types, tracked.kind)
            for sample in samples:
                key = sample.key
                if key in seen:
                    continue
                seen.add(key)
                if kind is MetricKind.COUNTER:
                    value = self._rates.derive(key, sample.value)
                else:
                    value = sample.value
                self._store.append(key, snapshot.timestamp, value)

    def _notify(self, update: FeedUpdate) -> None:
        for callback in list(self._subscribers):
            try:
                callback(update)
            except Exception:
                logger.exception("Feed subscriber %r failed on %s", callback, update.kind.name)
