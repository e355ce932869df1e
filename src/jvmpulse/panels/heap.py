"""Heap panel: per-pool usage and heap-wide totals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from jvmpulse.engine.feed import TrackedSeries
from jvmpulse.metrics.projections import label_equals, select, sum_values
from jvmpulse.metrics.rates import MetricKind
from jvmpulse.panels.base import Panel

if TYPE_CHECKING:
    from jvmpulse.metrics.models import Snapshot
    from jvmpulse.panels.base import LabeledSeries

IS_HEAP = label_equals("area", "heap")

HEAP_USED = TrackedSeries(
    "jvm_memory_bytes_used",
    fallbacks=("jvm_memory_used_bytes",),
    predicate=IS_HEAP,
    kind=MetricKind.GAUGE,
)
_COMMITTED = ("jvm_memory_bytes_committed", "jvm_memory_committed_bytes")
_MAX = ("jvm_memory_bytes_max", "jvm_memory_max_bytes")

_POOL_LABELS = ("id", "pool", "area")


@dataclass(frozen=True)
class HeapView:
    """Heap occupancy of the selected process.

    Attributes:
        used: Bytes used, summed over heap pools.
        committed: Bytes committed, summed over heap pools.
        max: Maximum bytes, summed over heap pools that declare a limit.
        pools: Used-bytes series, one line per heap pool.
    """

    used: float = 0.0
    committed: float = 0.0
    max: float = 0.0
    pools: tuple[LabeledSeries, ...] = ()

    @property
    def utilization(self) -> float | None:
        """Return ``used / max``, or None when no limit is known."""
        if self.max <= 0:
            return None
        return self.used / self.max


def _heap_total(snapshot: Snapshot, names: tuple[str, ...]) -> float:
    for name in names:
        if select(snapshot.metrics, name, IS_HEAP):
            return sum_values(snapshot.metrics, name, IS_HEAP)
    return 0.0


class HeapPanel(Panel):
    title = "Heap"

    def tracked_series(self) -> tuple[TrackedSeries, ...]:
        return (HEAP_USED,)

    def empty_view(self) -> HeapView:
        return HeapView()

    def build_view(self, snapshot: Snapshot) -> HeapView:
        # Pools without a limit report -1
        max_bytes = 0.0
        for name in _MAX:
            limited = [s.value for s in select(snapshot.metrics, name, IS_HEAP)]
            if limited:
                max_bytes = sum(v for v in limited if v >= 0)
                break

        return HeapView(
            used=_heap_total(snapshot, HEAP_USED.names),
            committed=_heap_total(snapshot, _COMMITTED),
            max=max_bytes,
            pools=self.labeled_series(HEAP_USED, *_POOL_LABELS),
        )
