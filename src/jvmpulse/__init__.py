"""JvmPulse: live metrics ingestion for JVM diagnostics dashboards."""

from __future__ import annotations

from jvmpulse.client.http import AgentClient, FetchMetric
from jvmpulse.engine.feed import MetricsFeed, TrackedSeries
from jvmpulse.engine.scheduler import PollScheduler, PollState
from jvmpulse.engine.session import MonitorSession
from jvmpulse.exposition.parser import parse, parse_types
from jvmpulse.metrics.models import FeedUpdate, Sample, SeriesKey, SeriesPoint, Snapshot, UpdateKind
from jvmpulse.metrics.rates import MetricKind, RateDeriver, classify
from jvmpulse.metrics.store import SeriesStore

__version__ = "0.1.0"

__all__ = [
    "AgentClient",
    "FeedUpdate",
    "FetchMetric",
    "MetricKind",
    "MetricsFeed",
    "MonitorSession",
    "PollScheduler",
    "PollState",
    "RateDeriver",
    "Sample",
    "SeriesKey",
    "SeriesPoint",
    "SeriesStore",
    "Snapshot",
    "TrackedSeries",
    "UpdateKind",
    "classify",
    "parse",
    "parse_types",
]
