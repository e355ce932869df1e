"""Monitor session: ties target selection to polling, the feed, and fetch stats."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from jvmpulse._internal.config import JvmPulseConfig
from jvmpulse._internal.logging import get_logger
from jvmpulse.client.http import AgentClient
from jvmpulse.engine.feed import MetricsFeed
from jvmpulse.engine.scheduler import PollScheduler, PollState
from jvmpulse.metrics.stats import FetchStats

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from jvmpulse.metrics.models import FeedUpdate

logger = get_logger("engine.session")


class MonitorSession:
    """Owns the ingestion core for whichever target is selected.

    Selecting a target resets the feed and fetch statistics and starts a
    new poll sequence; clearing it stops polling and empties the feed.
    Consumers attach to ``session.feed``.

    Usage::

        async with MonitorSession(load_config()) as session:
            OverviewPanel(session.feed)
            session.select("42")
            update = await session.next_update()

    Attributes:
        config: Effective configuration.
        feed: Distribution point for snapshots, errors and series.
        stats: Fetch latency and failure statistics.
    """

    def __init__(
        self,
        config: JvmPulseConfig | None = None,
        *,
        fetch: Callable[[str], Awaitable[str]] | None = None,
    ) -> None:
        """Initialize an idle session.

        Args:
            config: Configuration. Defaults to ``JvmPulseConfig()``.
            fetch: Replacement fetch coroutine. When omitted an
                ``AgentClient`` built from ``config`` is used and opened by
                ``__aenter__``.
        """
        self.config = config or JvmPulseConfig()
        self.feed = MetricsFeed(capacity=self.config.window_capacity)
        self.stats = FetchStats()

        self._client: AgentClient | None = None
        if fetch is None:
            self._client = AgentClient(
                self.config.base_url,
                metrics_path=self.config.metrics_path,
                metric_callback=self.stats.record,
                timeout=self.config.request_timeout,
            )
            fetch = self._client.fetch_metrics

        self._scheduler = PollScheduler(
            fetch,
            on_snapshot=self.feed.publish,
            on_error=self.feed.publish_error,
            interval=self.config.poll_interval,
        )

    async def __aenter__(self) -> MonitorSession:
        if self._client is not None:
            await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.close()

    @property
    def state(self) -> PollState:
        """Return the poll state of the underlying scheduler."""
        return self._scheduler.state

    @property
    def target(self) -> str | None:
        """Return the selected target, or None."""
        return self._scheduler.target

    @property
    def loading(self) -> bool:
        """Return True while a fetch is in flight."""
        return self._scheduler.loading

    def select(self, target: str | None) -> None:
        """Observe ``target`` from now on (None clears the selection).

        Re-selecting the current target keeps its series and counters.

        Raises:
            SchedulerError: If the session is closed or no event loop is
                running. The feed and statistics are left untouched.
        """
        if target is None:
            self.clear()
            return
        if self._scheduler.state is PollState.POLLING and target == self._scheduler.target:
            return
        self._scheduler.select(target)
        self.feed.reset(target)
        self.stats.reset()

    def clear(self) -> None:
        """Stop observing and drop all state of the previous target."""
        self._scheduler.clear()
        self.stats.reset()
        if self.feed.target is not None:
            self.feed.reset(None)

    async def close(self) -> None:
        """Stop polling for good and release the HTTP session."""
        await self._scheduler.stop()
        if self._client is not None:
            await self._client.__aexit__(None, None, None)
        logger.debug("Monitor session closed")

    async def next_update(self, timeout: float | None = None) -> FeedUpdate:
        """Wait for the next feed update.

        Args:
            timeout: Seconds to wait; None waits forever.

        Raises:
            TimeoutError: If no update arrives in time.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[FeedUpdate] = loop.create_future()

        def _on_update(update: FeedUpdate) -> None:
            if not future.done():
                future.set_result(update)

        unsubscribe = self.feed.subscribe(_on_update)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            unsubscribe()
