"""Instrumented async client for the agent/backend metrics endpoint."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

from jvmpulse._internal.config import DEFAULT_METRICS_PATH
from jvmpulse._internal.errors import FetchError
from jvmpulse._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger("client.http")


def _noop_callback(metric: FetchMetric) -> None:
    """Default no-op metric callback."""


@dataclass
class FetchMetric:
    """Raw timing record emitted for every metrics fetch.

    Attributes:
        timestamp: Monotonic timestamp when the request started.
        target: Target id the metrics were requested for.
        url: Full request URL.
        status_code: HTTP response status code (0 if the request failed).
        latency_ms: Time until the body was read, in milliseconds.
        content_length: Response body size in bytes.
        error: Error message if the fetch failed, None otherwise.
    """

    timestamp: float
    target: str
    url: str
    status_code: int
    latency_ms: float
    content_length: int
    error: str | None = None


class AgentClient:
    """Async client fetching exposition text for a target.

    Wraps an ``aiohttp.ClientSession``. Every fetch is timed and reported
    through ``metric_callback`` whether it succeeds or not. Any failure,
    including a non-2xx status, surfaces as ``FetchError``.

    Attributes:
        base_url: Base URL prepended to the metrics path.
        metrics_path: Path template; ``{target}`` is replaced per call.
        headers: Headers applied to every request.
    """

    def __init__(
        self,
        base_url: str,
        *,
        metrics_path: str = DEFAULT_METRICS_PATH,
        headers: dict[str, str] | None = None,
        metric_callback: Callable[[FetchMetric], None] | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the backend or agent.
            metrics_path: Path template containing ``{target}``.
            headers: Default headers applied to every request.
            metric_callback: Invoked with a ``FetchMetric`` after each
                fetch. Defaults to a no-op.
            timeout: Total request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.metrics_path = metrics_path
        self.headers: dict[str, str] = dict(headers or {})
        self._metric_callback = metric_callback or _noop_callback
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AgentClient:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    def url_for(self, target: str) -> str:
        """Return the metrics URL of ``target``."""
        return f"{self.base_url}{self.metrics_path.format(target=target)}"

    async def fetch_metrics(self, target: str) -> str:
        """Fetch the exposition text of ``target``.

        Args:
            target: Id of the monitored process.

        Returns:
            The response body.

        Raises:
            FetchError: On transport failure, timeout, or a non-2xx status.
                For a bad status the message is the response body, or the
                reason phrase when the body is empty.
            RuntimeError: If the client is used outside of an async context
                manager.
        """
        if self._session is None:
            msg = "AgentClient must be used as an async context manager"
            raise RuntimeError(msg)

        url = self.url_for(target)
        start = time.monotonic()
        status_code = 0
        body = ""
        error: str | None = None

        try:
            async with self._session.get(url, headers=self.headers) as resp:
                status_code = resp.status
                body = await resp.text()
                if resp.status >= 400:
                    error = body.strip() or resp.reason or f"HTTP {resp.status}"
        except (aiohttp.ClientError, TimeoutError) as exc:
            detail = str(exc)
            error = f"{type(exc).__name__}: {detail}" if detail else type(exc).__name__

        # Cancelled fetches propagate above and are never reported
        latency_ms = (time.monotonic() - start) * 1000
        self._metric_callback(
            FetchMetric(
                timestamp=start,
                target=target,
                url=url,
                status_code=status_code,
                latency_ms=latency_ms,
                content_length=len(body),
                error=error,
            )
        )

        if error is not None:
            logger.debug("Fetch for target %s failed: %s", target, error)
            raise FetchError(error, status_code=status_code or None)

        return body
