"""Counter-to-rate derivation.

Counters only ever grow while the target lives, so their raw value is
rarely interesting. ``RateDeriver`` turns each new cumulative reading into
the non-negative increase since the previous poll.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from jvmpulse.metrics.models import SeriesKey

# Suffixes of cumulative samples when no TYPE declaration is available.
_COUNTER_SUFFIXES = ("_total", "_count", "_sum")
# Suffixes that tie a sample back to its declared family.
_FAMILY_SUFFIXES = ("_total", "_count", "_sum", "_bucket")


class MetricKind(Enum):
    """How a metric's value should be interpreted."""

    COUNTER = auto()
    GAUGE = auto()


def _kind_from_family(declared: str, suffix: str) -> MetricKind:
    if declared == "counter" and suffix == "_total":
        return MetricKind.COUNTER
    if declared in ("summary", "histogram") and suffix in ("_sum", "_count", "_bucket"):
        return MetricKind.COUNTER
    return MetricKind.GAUGE


def classify(
    name: str,
    types: Mapping[str, str] | None = None,
    explicit: MetricKind | None = None,
) -> MetricKind:
    """Decide whether ``name`` is a cumulative counter or a gauge.

    Precedence: the caller's explicit kind, then a ``# TYPE`` declaration
    for the name or its family, then the naming convention.

    Args:
        name: Sample metric name.
        types: ``# TYPE`` declarations of the snapshot, if any.
        explicit: Kind forced by the caller.

    Returns:
        The metric kind.
    """
    if explicit is not None:
        return explicit

    if types:
        declared = types.get(name)
        if declared is not None:
            return MetricKind.COUNTER if declared == "counter" else MetricKind.GAUGE
        for suffix in _FAMILY_SUFFIXES:
            if name.endswith(suffix):
                family = types.get(name[: -len(suffix)])
                if family is not None:
                    return _kind_from_family(family, suffix)

    if name.endswith(_COUNTER_SUFFIXES):
        return MetricKind.COUNTER
    return MetricKind.GAUGE


class RateDeriver:
    """Remembers the last cumulative value per series and emits deltas.

    A decrease (the target restarted, or the counter wrapped) yields 0
    instead of a negative spike, and the lower value becomes the new
    baseline.
    """

    def __init__(self) -> None:
        self._previous: dict[SeriesKey, float] = {}

    def derive(self, key: SeriesKey, cumulative: float) -> float:
        """Return the increase of ``key`` since its previous observation.

        Args:
            key: Series identity.
            cumulative: Current raw counter value.

        Returns:
            0.0 on the first observation, otherwise
            ``max(0.0, cumulative - previous)``.
        """
        previous = self._previous.get(key)
        self._previous[key] = cumulative
        if previous is None:
            return 0.0
        return max(0.0, cumulative - previous)

    def previous(self, key: SeriesKey) -> float | None:
        """Return the last recorded cumulative value of ``key``."""
        return self._previous.get(key)

    def reset(self) -> None:
        """Forget every series."""
        self._previous.clear()

    def __len__(self) -> int:
        return len(self._previous)
