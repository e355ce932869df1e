"""Thread-safe bounded rolling windows, one per series."""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING

from jvmpulse.metrics.models import SeriesPoint

if TYPE_CHECKING:
    from jvmpulse.metrics.models import SeriesKey

DEFAULT_CAPACITY = 180


class SeriesStore:
    """Fixed-size ring of ``SeriesPoint`` objects per ``SeriesKey``.

    The polling task appends points, and consumers (possibly on another
    thread, e.g. a terminal renderer) read copies of the windows. A
    ``threading.Lock`` protects concurrent access.

    Buffers are created on first append and only removed by ``clear()``.
    A series that stops appearing in the exposition keeps its last points.

    Attributes:
        capacity: Maximum number of points kept per series.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize an empty store.

        Args:
            capacity: Maximum points per series. Must be >= 1.

        Raises:
            ValueError: If capacity is less than 1.
        """
        if capacity < 1:
            msg = f"capacity must be >= 1, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._buffers: dict[SeriesKey, deque[SeriesPoint]] = {}
        self._lock = threading.Lock()

    def append(self, key: SeriesKey, timestamp: float, value: float) -> None:
        """Append a point to the tail of ``key``'s window.

        The oldest point is dropped once the window holds ``capacity``
        points.

        Args:
            key: Series identity.
            timestamp: Wall-clock time of the observation.
            value: Observed (or derived) value.
        """
        with self._lock:
            buffer = self._buffers.get(key)
            if buffer is None:
                buffer = deque(maxlen=self.capacity)
                self._buffers[key] = buffer
            buffer.append(SeriesPoint(timestamp, value))

    def window(self, key: SeriesKey) -> list[SeriesPoint]:
        """Return a copy of ``key``'s points, oldest first.

        Returns:
            The stored points, or an empty list for an unknown key.
        """
        with self._lock:
            buffer = self._buffers.get(key)
            return list(buffer) if buffer is not None else []

    def latest(self, key: SeriesKey) -> SeriesPoint | None:
        """Return the most recent point of ``key``, or None."""
        with self._lock:
            buffer = self._buffers.get(key)
            if not buffer:
                return None
            return buffer[-1]

    def keys(self, metric: str | None = None) -> list[SeriesKey]:
        """Return known series keys in creation order.

        Args:
            metric: Only return keys of this metric name when given.
        """
        with self._lock:
            return [k for k in self._buffers if metric is None or k.metric == metric]

    def clear(self) -> None:
        """Drop every buffer."""
        with self._lock:
            self._buffers.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._buffers

    def __len__(self) -> int:
        """Return the number of series held."""
        with self._lock:
            return len(self._buffers)
