"""GC panel: per-collector pause time and collection counts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from jvmpulse.engine.feed import TrackedSeries
from jvmpulse.metrics.projections import select
from jvmpulse.panels.base import Panel

if TYPE_CHECKING:
    from jvmpulse._internal.types import Labels
    from jvmpulse.metrics.models import Snapshot
    from jvmpulse.panels.base import LabeledSeries

GC_SECONDS = TrackedSeries("jvm_gc_collection_seconds_sum")
GC_COUNT = TrackedSeries("jvm_gc_collection_seconds_count")

_COLLECTOR_LABELS = ("gc", "name")


def _collector_name(labels: Labels) -> str:
    for label in _COLLECTOR_LABELS:
        if labels.get(label):
            return labels[label]
    return "gc"


@dataclass(frozen=True)
class CollectorTotals:
    """Cumulative totals of one garbage collector.

    Attributes:
        collector: Collector name (``gc`` label, else ``name``).
        seconds: Total time spent collecting.
        count: Number of collections, None if the exporter omits it.
    """

    collector: str
    seconds: float
    count: float | None


@dataclass(frozen=True)
class GcView:
    """GC activity of the selected process.

    Attributes:
        collectors: Totals per collector, in exposition order.
        time_series: GC seconds spent per poll interval, one line per collector.
        count_series: Collections per poll interval, one line per collector.
    """

    collectors: tuple[CollectorTotals, ...] = ()
    time_series: tuple[LabeledSeries, ...] = ()
    count_series: tuple[LabeledSeries, ...] = ()

    @property
    def total_seconds(self) -> float:
        """Return the GC time of all collectors combined."""
        return sum(c.seconds for c in self.collectors)

    @property
    def total_count(self) -> float:
        """Return the collections of all collectors (missing counts as 0)."""
        return sum(c.count or 0.0 for c in self.collectors)


class GcPanel(Panel):
    title = "Garbage Collection"

    def tracked_series(self) -> tuple[TrackedSeries, ...]:
        return (GC_SECONDS, GC_COUNT)

    def empty_view(self) -> GcView:
        return GcView()

    def build_view(self, snapshot: Snapshot) -> GcView:
        counts = {
            _collector_name(s.labels): s.value for s in select(snapshot.metrics, GC_COUNT.name)
        }
        collectors = tuple(
            CollectorTotals(
                collector=_collector_name(s.labels),
                seconds=s.value,
                count=counts.get(_collector_name(s.labels)),
            )
            for s in select(snapshot.metrics, GC_SECONDS.name)
        )
        return GcView(
            collectors=collectors,
            time_series=self.labeled_series(GC_SECONDS, *_COLLECTOR_LABELS),
            count_series=self.labeled_series(GC_COUNT, *_COLLECTOR_LABELS),
        )
