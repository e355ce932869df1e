"""Abstract base class for feed consumers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jvmpulse.metrics.models import UpdateKind
from jvmpulse.metrics.projections import WindowSummary, series_label, summarize_window

if TYPE_CHECKING:
    from jvmpulse.engine.feed import MetricsFeed, TrackedSeries
    from jvmpulse.metrics.models import FeedUpdate, SeriesKey, SeriesPoint, Snapshot


@dataclass(frozen=True)
class LabeledSeries:
    """One chart line: a series window plus its display label.

    Attributes:
        label: Display name, e.g. the collector or pool name.
        key: Canonical series identity.
        points: Window contents, oldest first.
        summary: Statistics over ``points``.
    """

    label: str
    key: SeriesKey
    points: tuple[SeriesPoint, ...]
    summary: WindowSummary


class Panel(ABC):
    """Abstract base for independent consumers of a ``MetricsFeed``.

    A panel declares the series it charts via :meth:`tracked_series`,
    which the feed then maintains for it, and rebuilds an immutable view
    from every published snapshot. A reset (target switched or cleared)
    empties the view; a fetch error keeps the last view on screen.

    Example::

        panel = HeapPanel(session.feed)
        ...
        print(format_bytes(panel.view.used))
    """

    title: str = ""

    def __init__(self, feed: MetricsFeed) -> None:
        self._feed = feed
        self._tracked = tuple(feed.track(s) for s in self.tracked_series())
        self._view = self.empty_view()
        self._unsubscribe = feed.subscribe(self._on_update)

    @abstractmethod
    def tracked_series(self) -> tuple[TrackedSeries, ...]:
        """Return the metrics this panel needs rolling series for."""

    @abstractmethod
    def empty_view(self) -> Any:
        """Return the view shown before any snapshot arrived."""

    @abstractmethod
    def build_view(self, snapshot: Snapshot) -> Any:
        """Project ``snapshot`` and the feed's windows into a view."""

    @property
    def view(self) -> Any:
        """Return the latest view."""
        return self._view

    def close(self) -> None:
        """Stop receiving feed updates."""
        self._unsubscribe()

    def labeled_series(
        self,
        tracked: TrackedSeries,
        *label_names: str,
    ) -> tuple[LabeledSeries, ...]:
        """Return one ``LabeledSeries`` per label set of ``tracked``.

        Series are labeled with the first of ``label_names`` present on
        the key. Only keys passing the tracked predicate are included.
        """
        for name in tracked.names:
            keys = [
                k
                for k in self._feed.keys(name)
                if tracked.predicate is None or tracked.predicate(k.label_dict)
            ]
            if keys:
                return tuple(self._labeled(k, label_names) for k in keys)
        return ()

    def _labeled(self, key: SeriesKey, label_names: tuple[str, ...]) -> LabeledSeries:
        points = self._feed.window(key)
        return LabeledSeries(
            label=series_label(key, *label_names) if label_names else key.metric,
            key=key,
            points=tuple(points),
            summary=summarize_window(points),
        )

    def _on_update(self, update: FeedUpdate) -> None:
        if update.kind is UpdateKind.RESET:
            self._view = self.empty_view()
        elif update.kind is UpdateKind.SNAPSHOT and update.snapshot is not None:
            self._view = self.build_view(update.snapshot)
