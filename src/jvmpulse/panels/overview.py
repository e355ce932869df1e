"""Overview panel: live threads, CPU time and resident memory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from jvmpulse.engine.feed import TrackedSeries
from jvmpulse.metrics.projections import first_of, first_value
from jvmpulse.metrics.rates import MetricKind
from jvmpulse.panels.base import Panel

if TYPE_CHECKING:
    from jvmpulse.metrics.models import Snapshot
    from jvmpulse.panels.base import LabeledSeries

THREADS = TrackedSeries(
    "jvm_threads_current",
    fallbacks=("jvmdoctor_thread_count",),
    kind=MetricKind.GAUGE,
)
CPU_SECONDS = TrackedSeries("process_cpu_seconds_total", kind=MetricKind.COUNTER)


@dataclass(frozen=True)
class OverviewView:
    """Headline numbers of the selected process.

    Attributes:
        live_threads: Current live thread count.
        cpu_seconds: Cumulative process CPU time.
        rss_bytes: Resident set size.
        threads: Live thread series.
        cpu_delta: CPU seconds consumed per poll interval.
    """

    live_threads: float | None = None
    cpu_seconds: float | None = None
    rss_bytes: float | None = None
    threads: LabeledSeries | None = None
    cpu_delta: LabeledSeries | None = None


class OverviewPanel(Panel):
    title = "Overview"

    def tracked_series(self) -> tuple[TrackedSeries, ...]:
        return (THREADS, CPU_SECONDS)

    def empty_view(self) -> OverviewView:
        return OverviewView()

    def build_view(self, snapshot: Snapshot) -> OverviewView:
        metrics = snapshot.metrics
        threads = self.labeled_series(THREADS)
        cpu = self.labeled_series(CPU_SECONDS)
        return OverviewView(
            live_threads=first_of(metrics, *THREADS.names),
            cpu_seconds=first_value(metrics, CPU_SECONDS.name),
            rss_bytes=first_value(metrics, "process_resident_memory_bytes"),
            threads=threads[0] if threads else None,
            cpu_delta=cpu[0] if cpu else None,
        )
