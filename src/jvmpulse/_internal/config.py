"""Configuration loading for jvmpulse."""

from __future__ import annotations

import os
from dataclasses import dataclass

from jvmpulse._internal.errors import ConfigError

DEFAULT_METRICS_PATH = "/api/processes/{target}/metrics"


@dataclass(frozen=True)
class JvmPulseConfig:
    """Global jvmpulse configuration.

    Attributes:
        base_url: Base URL of the backend that proxies agent metrics.
        metrics_path: Path template for the metrics endpoint. ``{target}``
            is replaced by the selected target id.
        poll_interval: Seconds to wait after a fetch settles before the next.
        window_capacity: Maximum points kept per series.
        request_timeout: Total timeout of one fetch in seconds.
    """

    base_url: str = "http://localhost:8080"
    metrics_path: str = DEFAULT_METRICS_PATH
    poll_interval: float = 4.0
    window_capacity: int = 180
    request_timeout: float = 10.0


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got: {value}"
        raise ConfigError(msg)
    return value


def load_config() -> JvmPulseConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        JVMPULSE_BASE_URL: Backend base URL.
        JVMPULSE_METRICS_PATH: Metrics path template (must contain ``{target}``).
        JVMPULSE_POLL_INTERVAL: Poll interval in seconds (default: 4.0).
        JVMPULSE_WINDOW: Points kept per series (default: 180).
        JVMPULSE_TIMEOUT: Request timeout in seconds (default: 10.0).

    Returns:
        Populated JvmPulseConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    defaults = JvmPulseConfig()

    metrics_path = os.environ.get("JVMPULSE_METRICS_PATH", defaults.metrics_path)
    if "{target}" not in metrics_path:
        msg = f"JVMPULSE_METRICS_PATH must contain '{{target}}', got: {metrics_path!r}"
        raise ConfigError(msg)

    window_str = os.environ.get("JVMPULSE_WINDOW", str(defaults.window_capacity))
    try:
        window = int(window_str)
    except ValueError:
        msg = f"JVMPULSE_WINDOW must be an integer, got: {window_str!r}"
        raise ConfigError(msg) from None

    if window < 1:
        msg = f"JVMPULSE_WINDOW must be >= 1, got: {window}"
        raise ConfigError(msg)

    interval = _positive_float(
        "JVMPULSE_POLL_INTERVAL",
        os.environ.get("JVMPULSE_POLL_INTERVAL", str(defaults.poll_interval)),
    )
    timeout = _positive_float(
        "JVMPULSE_TIMEOUT",
        os.environ.get("JVMPULSE_TIMEOUT", str(defaults.request_timeout)),
    )

    return JvmPulseConfig(
        base_url=os.environ.get("JVMPULSE_BASE_URL", defaults.base_url),
        metrics_path=metrics_path,
        poll_interval=interval,
        window_capacity=window,
        request_timeout=timeout,
    )
