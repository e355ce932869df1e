"""Running statistics about the poll feed itself.

Fetch latencies go into an HDR histogram as integer microseconds, clamped
to ``[1us, 5min]`` so a pathological fetch still shows up as the maximum.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from jvmpulse.client.http import FetchMetric

_LATENCY_LOWEST_US = 1
_LATENCY_HIGHEST_US = 300_000_000
_LATENCY_DIGITS = 3


@dataclass(frozen=True)
class FetchSummary:
    """Point-in-time view of fetch health for the current target.

    Attributes:
        fetches: Fetches that settled (success or failure).
        failures: Fetches that failed.
        failure_rate: ``failures / fetches`` (0.0 when nothing was fetched).
        last_status: HTTP status of the latest fetch (0 if none was received).
        last_error: Error message of the latest failed fetch, if any.
        bytes_received: Total body bytes of all fetches.
        latency_min: Fastest fetch in milliseconds.
        latency_avg: Mean fetch latency in milliseconds.
        latency_p50: Median fetch latency in milliseconds.
        latency_p95: 95th percentile fetch latency in milliseconds.
        latency_max: Slowest fetch in milliseconds.
    """

    fetches: int = 0
    failures: int = 0
    failure_rate: float = 0.0
    last_status: int = 0
    last_error: str | None = None
    bytes_received: int = 0
    latency_min: float = 0.0
    latency_avg: float = 0.0
    latency_p50: float = 0.0
    latency_p95: float = 0.0
    latency_max: float = 0.0


class FetchStats:
    """Accumulates ``FetchMetric`` records.

    ``record`` is designed to be passed as ``AgentClient.metric_callback``.
    """

    def __init__(self) -> None:
        self._latency: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            _LATENCY_LOWEST_US, _LATENCY_HIGHEST_US, _LATENCY_DIGITS
        )
        self._fetches = 0
        self._failures = 0
        self._bytes = 0
        self._last_status = 0
        self._last_error: str | None = None

    def record(self, metric: FetchMetric) -> None:
        """Fold one settled fetch into the statistics."""
        latency_us = int(metric.latency_ms * 1000)
        self._latency.record_value(
            max(_LATENCY_LOWEST_US, min(latency_us, _LATENCY_HIGHEST_US))
        )
        self._fetches += 1
        self._bytes += metric.content_length
        self._last_status = metric.status_code
        if metric.error is not None:
            self._failures += 1
            self._last_error = metric.error

    def summary(self) -> FetchSummary:
        """Return the current statistics."""
        hist = self._latency
        empty = hist.total_count == 0
        return FetchSummary(
            fetches=self._fetches,
            failures=self._failures,
            failure_rate=self._failures / self._fetches if self._fetches else 0.0,
            last_status=self._last_status,
            last_error=self._last_error,
            bytes_received=self._bytes,
            latency_min=0.0 if empty else hist.get_min_value() / 1000.0,
            latency_avg=0.0 if empty else hist.get_mean_value() / 1000.0,
            latency_p50=0.0 if empty else hist.get_value_at_percentile(50.0) / 1000.0,
            latency_p95=0.0 if empty else hist.get_value_at_percentile(95.0) / 1000.0,
            latency_max=0.0 if empty else hist.get_max_value() / 1000.0,
        )

    def reset(self) -> None:
        """Forget everything (called on target switch)."""
        self._latency.reset()
        self._fetches = 0
        self._failures = 0
        self._bytes = 0
        self._last_status = 0
        self._last_error = None
