"""CPU panel: process CPU time consumed per poll and utilization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from jvmpulse.metrics.projections import first_value
from jvmpulse.panels.base import Panel
from jvmpulse.panels.overview import CPU_SECONDS

if TYPE_CHECKING:
    from jvmpulse.engine.feed import TrackedSeries
    from jvmpulse.metrics.models import Snapshot
    from jvmpulse.panels.base import LabeledSeries


@dataclass(frozen=True)
class CpuView:
    """CPU usage of the selected process.

    Attributes:
        cpu_seconds: Cumulative process CPU time.
        utilization: CPU seconds per wall-clock second over the latest
            interval (1.0 = one core fully busy). None until two points exist.
        usage: CPU seconds consumed per poll interval.
    """

    cpu_seconds: float | None = None
    utilization: float | None = None
    usage: LabeledSeries | None = None


class CpuPanel(Panel):
    title = "CPU"

    def tracked_series(self) -> tuple[TrackedSeries, ...]:
        return (CPU_SECONDS,)

    def empty_view(self) -> CpuView:
        return CpuView()

    def build_view(self, snapshot: Snapshot) -> CpuView:
        series = self.labeled_series(CPU_SECONDS)
        usage = series[0] if series else None

        utilization = None
        if usage is not None and len(usage.points) >= 2:
            previous, latest = usage.points[-2], usage.points[-1]
            elapsed = latest.timestamp - previous.timestamp
            if elapsed > 0:
                utilization = latest.value / elapsed

        return CpuView(
            cpu_seconds=first_value(snapshot.metrics, CPU_SECONDS.name),
            utilization=utilization,
            usage=usage,
        )
