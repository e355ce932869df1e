"""Best-effort parser for the line-oriented metrics exposition format.

Each non-comment line carries one sample::

    jvm_gc_collection_seconds_count{gc="G1 Young Generation"} 13
    process_cpu_seconds_total 4.52

Parsing works one line at a time. A line that cannot be understood is
skipped and the rest of the document is still used, so a partially
written or mixed-version payload still yields every readable sample.
"""

from __future__ import annotations

import math
import re

from jvmpulse._internal.logging import get_logger
from jvmpulse.metrics.models import Sample

logger = get_logger("exposition.parser")

_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
# key="value" pairs; values may contain escaped quotes, commas and spaces
_LABEL_RE = re.compile(r'([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*"((?:[^"\\]|\\.)*)"')
_ESCAPE_RE = re.compile(r"\\(.)")


def _unescape(value: str) -> str:
    return _ESCAPE_RE.sub(lambda m: "\n" if m.group(1) == "n" else m.group(1), value)


def parse_labels(label_str: str) -> dict[str, str]:
    """Parse the inside of a ``{...}`` label block.

    Pairs that do not have the ``key="value"`` shape are ignored.

    Args:
        label_str: Text between the braces, e.g. ``area="heap",id="G1 Eden Space"``.

    Returns:
        Label mapping with quotes stripped and escapes resolved.
    """
    if not label_str.strip():
        return {}
    return {key: _unescape(value) for key, value in _LABEL_RE.findall(label_str)}


def parse_value(token: str) -> float | None:
    """Return ``token`` as a finite float, or None if it is not one."""
    if not _NUMBER_RE.fullmatch(token):
        return None
    value = float(token)
    if not math.isfinite(value):
        return None
    return value


def parse_line(line: str) -> Sample | None:
    """Parse a single sample line.

    Args:
        line: One line of exposition text, already stripped.

    Returns:
        The parsed sample, or None when the line is a comment, blank, or
        malformed.
    """
    if not line or line.startswith("#"):
        return None

    parts = line.rsplit(None, 1)
    if len(parts) != 2:
        return None
    series, raw_value = parts

    value = parse_value(raw_value)
    if value is None:
        return None

    series = series.strip()
    brace = series.find("{")
    if brace == -1:
        name = series
        labels: dict[str, str] = {}
    else:
        close = series.rfind("}")
        if close < brace:
            return None
        name = series[:brace].strip()
        labels = parse_labels(series[brace + 1 : close])

    if not _NAME_RE.fullmatch(name):
        return None

    return Sample(name=name, labels=labels, value=value)


def parse(text: str | None) -> dict[str, list[Sample]]:
    """Parse an exposition document into samples grouped by metric name.

    Never raises on malformed content: unreadable lines are dropped
    individually. The function keeps no state, so equal inputs always
    produce equal outputs.

    Args:
        text: Raw exposition text. ``None`` or empty yields ``{}``.

    Returns:
        Mapping of metric name to its samples in encounter order.
    """
    metrics: dict[str, list[Sample]] = {}
    if not text:
        return metrics

    skipped = 0
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        sample = parse_line(line)
        if sample is None:
            skipped += 1
            continue
        metrics.setdefault(sample.name, []).append(sample)

    if skipped:
        logger.debug("Skipped %d malformed exposition line(s)", skipped)

    return metrics


def parse_types(text: str | None) -> dict[str, str]:
    """Collect ``# TYPE <name> <kind>`` declarations.

    Args:
        text: Raw exposition text.

    Returns:
        Mapping of metric family name to declared kind (``counter``,
        ``gauge``, ``summary``, ...). Later declarations win.
    """
    types: dict[str, str] = {}
    if not text:
        return types

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line.startswith("#"):
            continue
        tokens = line[1:].split()
        if len(tokens) == 3 and tokens[0] == "TYPE":
            types[tokens[1]] = tokens[2].lower()

    return types
