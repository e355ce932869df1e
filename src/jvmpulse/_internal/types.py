"""Shared type aliases for jvmpulse."""

from __future__ import annotations

from collections.abc import Callable, Mapping

# Label set of one sample, e.g. {"gc": "G1 Young Generation"}.
Labels = Mapping[str, str]

# Filter applied to a sample's labels.
LabelPredicate = Callable[[Labels], bool]
