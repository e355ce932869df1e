"""Human-readable formatting of metric values."""

from __future__ import annotations

import math

_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(value: float | None) -> str:
    """Format a byte count with a binary unit, e.g. ``1.5 MB``.

    Returns ``N/A`` for None or NaN.
    """
    if value is None or math.isnan(value):
        return "N/A"
    if value <= 0:
        return "0 B"
    exponent = 0
    while value >= 1024 and exponent < len(_BYTE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{value:.1f} {_BYTE_UNITS[exponent]}"


def format_duration(seconds: float | None) -> str:
    """Format seconds as ``12.3s`` below a minute, else ``4m 7s``."""
    if seconds is None or math.isnan(seconds):
        return "N/A"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds % 60:.0f}s"


def format_percent(ratio: float | None) -> str:
    """Format a 0..1 ratio as ``42.0%``."""
    if ratio is None or math.isnan(ratio):
        return "N/A"
    return f"{ratio * 100:.1f}%"
