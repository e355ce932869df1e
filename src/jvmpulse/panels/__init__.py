"""Dashboard consumers of the metrics feed.

Each panel registers the series it charts with a :class:`MetricsFeed`,
then rebuilds an immutable view from every published snapshot. Panels
never parse exposition text or keep counter state of their own.
"""

from __future__ import annotations

from jvmpulse.panels.base import LabeledSeries, Panel
from jvmpulse.panels.cpu import CpuPanel, CpuView
from jvmpulse.panels.gc import CollectorTotals, GcPanel, GcView
from jvmpulse.panels.heap import HeapPanel, HeapView
from jvmpulse.panels.overview import OverviewPanel, OverviewView

__all__ = [
    "CollectorTotals",
    "CpuPanel",
    "CpuView",
    "GcPanel",
    "GcView",
    "HeapPanel",
    "HeapView",
    "LabeledSeries",
    "OverviewPanel",
    "OverviewView",
    "Panel",
]
