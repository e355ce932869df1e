"""Poll scheduler: one fetch sequence for the currently selected target."""

from __future__ import annotations

import asyncio
import contextlib
import time
from enum import Enum, auto
from typing import TYPE_CHECKING

from jvmpulse._internal.errors import ConfigError, SchedulerError
from jvmpulse._internal.logging import get_logger
from jvmpulse.exposition.parser import parse, parse_types
from jvmpulse.metrics.models import Snapshot

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = get_logger("engine.scheduler")


class PollState(Enum):
    """State machine for the poll scheduler."""

    IDLE = auto()
    POLLING = auto()
    STOPPED = auto()


def _noop_error(target: str, message: str) -> None:
    """Default no-op error callback."""


class PollScheduler:
    """Drives periodic metrics fetches for one selected target.

    State machine: IDLE -> POLLING(target) -> POLLING(other) -> IDLE
                   any state -> STOPPED (terminal)

    Selecting a target fetches immediately, then waits ``interval``
    seconds after each attempt settles before starting the next one, so
    at most one fetch is ever in flight. Changing or clearing the
    selection cancels the running sequence and bumps ``generation``; any
    result produced under an older generation is dropped without being
    reported.

    Failures never end the sequence: they are handed to ``on_error`` and
    the next attempt happens after the usual interval.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[str]],
        *,
        on_snapshot: Callable[[Snapshot], None],
        on_error: Callable[[str, str], None] | None = None,
        interval: float = 4.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an idle scheduler.

        Args:
            fetch: Coroutine function returning the exposition text of a
                target. Any exception counts as a failed cycle.
            on_snapshot: Called with each fresh snapshot.
            on_error: Called with ``(target, message)`` after a failed fetch.
            interval: Seconds between the end of one attempt and the start
                of the next. Must be positive.
            clock: Wall-clock source used to stamp snapshots.

        Raises:
            ConfigError: If interval is not positive.
        """
        if interval <= 0:
            msg = f"poll interval must be positive, got {interval}"
            raise ConfigError(msg)

        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._on_error = on_error or _noop_error
        self._interval = interval
        self._clock = clock

        self._state = PollState.IDLE
        self._target: str | None = None
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._loading = False

    @property
    def state(self) -> PollState:
        """Return the current scheduler state."""
        return self._state

    @property
    def target(self) -> str | None:
        """Return the target being polled, or None."""
        return self._target

    @property
    def generation(self) -> int:
        """Return the id of the current poll sequence."""
        return self._generation

    @property
    def loading(self) -> bool:
        """Return True while a fetch of the current sequence is in flight."""
        return self._loading

    @property
    def interval(self) -> float:
        """Return the pause between polls, in seconds."""
        return self._interval

    def select(self, target: str | None) -> None:
        """Start polling ``target``, replacing any running sequence.

        Re-selecting the target already being polled does nothing.
        ``select(None)`` is the same as ``clear()``.

        Raises:
            SchedulerError: If the scheduler is stopped or no event loop
                is running.
        """
        if self._state is PollState.STOPPED:
            msg = "cannot select a target on a stopped scheduler"
            raise SchedulerError(msg)

        if target is None:
            self.clear()
            return

        if self._state is PollState.POLLING and target == self._target:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            msg = "select() must be called from a running event loop"
            raise SchedulerError(msg) from None

        previous = self._target
        self._cancel_sequence()
        self._generation += 1
        self._target = target
        self._state = PollState.POLLING
        self._task = loop.create_task(
            self._poll_loop(target, self._generation),
            name=f"jvmpulse-poll-{target}",
        )

        if previous is None:
            logger.info(
                "Polling target %s every %.1fs",
                target,
                self._interval,
                extra={"target": target},
            )
        else:
            logger.info(
                "Switched polling from target %s to %s",
                previous,
                target,
                extra={"target": target},
            )

    def clear(self) -> None:
        """Stop polling without selecting another target."""
        if self._state is not PollState.POLLING:
            return
        logger.info("Stopped polling target %s", self._target)
        self._cancel_sequence()
        self._generation += 1
        self._target = None
        self._state = PollState.IDLE

    async def stop(self) -> None:
        """Cancel any sequence, wait for it to unwind, and enter STOPPED."""
        if self._state is PollState.STOPPED:
            return
        task = self._task
        self._cancel_sequence()
        self._generation += 1
        self._target = None
        self._state = PollState.STOPPED
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.debug("Scheduler stopped")

    def _cancel_sequence(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._loading = False

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state is PollState.POLLING

    async def _poll_loop(self, target: str, generation: int) -> None:
        while self._is_current(generation):
            await self._poll_once(target, generation)
            if not self._is_current(generation):
                return
            await asyncio.sleep(self._interval)

    async def _poll_once(self, target: str, generation: int) -> None:
        """Run one fetch and publish its outcome if still current."""
        self._loading = True
        try:
            text = await self._fetch(target)
        except Exception as exc:
            if not self._is_current(generation):
                logger.debug("Dropping stale failure for target %s", target)
                return
            message = str(exc) or type(exc).__name__
            logger.warning(
                "Metrics fetch for target %s failed: %s",
                target,
                message,
                extra={"target": target},
            )
            try:
                self._on_error(target, message)
            except Exception:
                logger.exception("Error handler failed for target %s", target)
            return
        finally:
            if generation == self._generation:
                self._loading = False

        if not self._is_current(generation):
            logger.debug("Dropping stale payload for target %s", target)
            return

        snapshot = Snapshot(
            target=target,
            timestamp=self._clock(),
            metrics=parse(text),
            types=parse_types(text),
        )
        logger.debug(
            "Snapshot for target %s: %d metrics, %d samples",
            target,
            len(snapshot.metrics),
            snapshot.sample_count,
        )
        try:
            self._on_snapshot(snapshot)
        except Exception:
            logger.exception("Snapshot handler failed for target %s", target)
