"""Read-only projections consumers derive from a snapshot.

All helpers are recomputed on each publish. They take the ``metrics``
mapping of a snapshot (or the output of ``parse``) and never modify it.
A missing mapping behaves like an empty one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from jvmpulse._internal.types import LabelPredicate
    from jvmpulse.metrics.models import Sample, SeriesKey, SeriesPoint

    Metrics = Mapping[str, Sequence[Sample]]


def select(
    metrics: Metrics | None,
    name: str,
    predicate: LabelPredicate | None = None,
) -> list[Sample]:
    """Return the samples of ``name`` whose labels satisfy ``predicate``."""
    if not metrics:
        return []
    samples = metrics.get(name) or ()
    return [s for s in samples if predicate is None or predicate(s.labels)]


def first_value(
    metrics: Metrics | None,
    name: str,
    predicate: LabelPredicate | None = None,
) -> float | None:
    """Return the value of the first matching sample of ``name``.

    Args:
        metrics: Snapshot metrics.
        name: Metric name.
        predicate: Optional label filter.

    Returns:
        The value, or None if no sample matches.
    """
    if not metrics:
        return None
    for sample in metrics.get(name) or ():
        if predicate is None or predicate(sample.labels):
            return sample.value
    return None


def first_of(
    metrics: Metrics | None,
    *names: str,
    predicate: LabelPredicate | None = None,
) -> float | None:
    """Return ``first_value`` of the first name that has a match.

    Lets a consumer support several exporter generations, e.g.
    ``first_of(m, "jvm_threads_current", "jvmdoctor_thread_count")``.
    """
    for name in names:
        value = first_value(metrics, name, predicate)
        if value is not None:
            return value
    return None


def sum_values(
    metrics: Metrics | None,
    name: str,
    predicate: LabelPredicate | None = None,
) -> float:
    """Sum every matching sample of ``name`` (0.0 when none match).

    Example:
        Heap bytes used across all heap pools::

            sum_values(m, "jvm_memory_bytes_used", label_equals("area", "heap"))
    """
    return float(sum(sample.value for sample in select(metrics, name, predicate)))


def label_equals(key: str, value: str) -> LabelPredicate:
    """Return a predicate matching samples whose ``key`` label equals ``value``."""

    def _predicate(labels: Mapping[str, str]) -> bool:
        return labels.get(key) == value

    return _predicate


def series_label(key: SeriesKey, *preferred: str) -> str:
    """Return a display name for a series.

    Uses the first of ``preferred`` label names present on the key, then
    falls back to the canonical rendering of the key.
    """
    labels = key.label_dict
    for name in preferred:
        value = labels.get(name)
        if value:
            return value
    return str(key)


@dataclass(frozen=True)
class WindowSummary:
    """Descriptive statistics of one rolling window.

    Attributes:
        count: Number of points.
        last: Most recent value.
        minimum: Smallest value.
        maximum: Largest value.
        mean: Arithmetic mean.
    """

    count: int = 0
    last: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    mean: float = 0.0


def summarize_window(points: Sequence[SeriesPoint]) -> WindowSummary:
    """Compute a ``WindowSummary`` over a window's values.

    Returns:
        All-zero summary for an empty window.
    """
    if not points:
        return WindowSummary()

    arr = np.fromiter((p.value for p in points), dtype=np.float64, count=len(points))
    return WindowSummary(
        count=len(points),
        last=float(arr[-1]),
        minimum=float(np.min(arr)),
        maximum=float(np.max(arr)),
        mean=float(np.mean(arr)),
    )
