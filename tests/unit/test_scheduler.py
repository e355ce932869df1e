"""Tests for the poll scheduler state machine."""

from __future__ import annotations

import asyncio

import pytest

from jvmpulse._internal.errors import ConfigError, SchedulerError
from jvmpulse.engine.scheduler import PollScheduler, PollState
from jvmpulse.metrics.models import Snapshot


class Recorder:
    """Collects scheduler callbacks and lets tests await them."""

    def __init__(self) -> None:
        self.snapshots: list[Snapshot] = []
        self.errors: list[tuple[str, str]] = []
        self._event = asyncio.Event()

    def on_snapshot(self, snapshot: Snapshot) -> None:
        self.snapshots.append(snapshot)
        self._event.set()

    def on_error(self, target: str, message: str) -> None:
        self.errors.append((target, message))
        self._event.set()

    async def wait(self, count: int, timeout: float = 2.0) -> None:
        async def _wait() -> None:
            while len(self.snapshots) + len(self.errors) < count:
                self._event.clear()
                await self._event.wait()

        await asyncio.wait_for(_wait(), timeout)


def _make(fetch, recorder: Recorder, interval: float = 0.01, **kwargs) -> PollScheduler:
    return PollScheduler(
        fetch,
        on_snapshot=recorder.on_snapshot,
        on_error=recorder.on_error,
        interval=interval,
        **kwargs,
    )


async def _payload(target: str) -> str:
    return f'jvm_threads_current{{target="{target}"}} 7\n'


class TestConstruction:
    @pytest.mark.parametrize("interval", [0.0, -1.0])
    def test_interval_must_be_positive(self, interval: float):
        with pytest.raises(ConfigError, match="poll interval must be positive"):
            PollScheduler(_payload, on_snapshot=lambda s: None, interval=interval)

    def test_initial_state(self):
        scheduler = PollScheduler(_payload, on_snapshot=lambda s: None)
        assert scheduler.state is PollState.IDLE
        assert scheduler.target is None
        assert scheduler.generation == 0
        assert scheduler.loading is False
        assert scheduler.interval == 4.0

    def test_select_requires_running_loop(self):
        scheduler = PollScheduler(_payload, on_snapshot=lambda s: None)
        with pytest.raises(SchedulerError, match="running event loop"):
            scheduler.select("1")


class TestPolling:
    async def test_fetches_immediately_and_builds_snapshot(self):
        recorder = Recorder()
        scheduler = _make(_payload, recorder, interval=60.0, clock=lambda: 1234.5)

        scheduler.select("1")
        await recorder.wait(1)

        snapshot = recorder.snapshots[0]
        assert snapshot.target == "1"
        assert snapshot.timestamp == 1234.5
        assert snapshot.metrics["jvm_threads_current"][0].value == 7.0
        assert scheduler.state is PollState.POLLING
        assert scheduler.target == "1"
        await scheduler.stop()

    async def test_keeps_polling(self):
        recorder = Recorder()
        scheduler = _make(_payload, recorder)

        scheduler.select("1")
        await recorder.wait(3)

        assert all(s.target == "1" for s in recorder.snapshots)
        await scheduler.stop()

    async def test_type_declarations_carried(self):
        async def fetch(target: str) -> str:
            return "# TYPE jvm_classes_loaded counter\njvm_classes_loaded 3\n"

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=60.0)
        scheduler.select("1")
        await recorder.wait(1)

        assert recorder.snapshots[0].types == {"jvm_classes_loaded": "counter"}
        await scheduler.stop()

    async def test_waits_for_attempt_before_next(self):
        in_flight = 0
        max_in_flight = 0

        async def fetch(target: str) -> str:
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            await asyncio.sleep(0.02)
            in_flight -= 1
            return "a 1\n"

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=0.001)
        scheduler.select("1")
        await recorder.wait(3)

        assert max_in_flight == 1
        await scheduler.stop()

    async def test_loading_while_fetch_in_flight(self):
        release = asyncio.Event()
        started = asyncio.Event()

        async def fetch(target: str) -> str:
            started.set()
            await release.wait()
            return "a 1\n"

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=60.0)
        scheduler.select("1")
        await asyncio.wait_for(started.wait(), 1.0)

        assert scheduler.loading is True
        release.set()
        await recorder.wait(1)
        assert scheduler.loading is False
        await scheduler.stop()

    async def test_reselecting_same_target_is_noop(self):
        recorder = Recorder()
        scheduler = _make(_payload, recorder, interval=60.0)

        scheduler.select("1")
        generation = scheduler.generation
        scheduler.select("1")

        assert scheduler.generation == generation
        await recorder.wait(1)
        assert len(recorder.snapshots) == 1
        await scheduler.stop()


class TestFailures:
    async def test_error_reported_and_polling_continues(self):
        calls = 0

        async def fetch(target: str) -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                msg = "HTTP 503"
                raise RuntimeError(msg)
            return "a 1\n"

        recorder = Recorder()
        scheduler = _make(fetch, recorder)
        scheduler.select("1")
        await recorder.wait(2)

        assert recorder.errors[0] == ("1", "HTTP 503")
        assert recorder.snapshots[0].target == "1"
        await scheduler.stop()

    async def test_message_falls_back_to_exception_type(self):
        async def fetch(target: str) -> str:
            raise TimeoutError

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=60.0)
        scheduler.select("1")
        await recorder.wait(1)

        assert recorder.errors == [("1", "TimeoutError")]
        await scheduler.stop()

    async def test_failing_snapshot_handler_does_not_stop_polling(self):
        calls = 0
        done = asyncio.Event()

        def on_snapshot(snapshot: Snapshot) -> None:
            nonlocal calls
            calls += 1
            if calls >= 2:
                done.set()
            msg = "consumer bug"
            raise RuntimeError(msg)

        scheduler = PollScheduler(_payload, on_snapshot=on_snapshot, interval=0.01)
        scheduler.select("1")
        await asyncio.wait_for(done.wait(), 2.0)
        assert scheduler.state is PollState.POLLING
        await scheduler.stop()


class TestSwitching:
    async def test_switch_discards_in_flight_result(self):
        release = asyncio.Event()
        started = asyncio.Event()

        async def fetch(target: str) -> str:
            if target == "1":
                started.set()
                await release.wait()
            return await _payload(target)

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=60.0)
        scheduler.select("1")
        await asyncio.wait_for(started.wait(), 1.0)

        scheduler.select("2")
        release.set()
        await recorder.wait(1)
        await asyncio.sleep(0.05)

        assert [s.target for s in recorder.snapshots] == ["2"]
        assert scheduler.target == "2"
        assert scheduler.generation == 2
        await scheduler.stop()

    async def test_fetch_ignoring_cancellation_is_still_dropped(self):
        started = asyncio.Event()
        finished = asyncio.Event()

        async def stubborn_fetch(target: str) -> str:
            if target == "1":
                started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    pass
                finished.set()
            return await _payload(target)

        recorder = Recorder()
        scheduler = _make(stubborn_fetch, recorder, interval=60.0)
        scheduler.select("1")
        await asyncio.wait_for(started.wait(), 1.0)

        scheduler.select("2")
        await asyncio.wait_for(finished.wait(), 1.0)
        await recorder.wait(1)
        await asyncio.sleep(0.05)

        assert [s.target for s in recorder.snapshots] == ["2"]
        await scheduler.stop()

    async def test_stale_failure_not_reported(self):
        started = asyncio.Event()

        async def fetch(target: str) -> str:
            if target == "1":
                started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    pass
                msg = "connection reset"
                raise ConnectionError(msg)
            return await _payload(target)

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=60.0)
        scheduler.select("1")
        await asyncio.wait_for(started.wait(), 1.0)

        scheduler.select("2")
        await recorder.wait(1)
        await asyncio.sleep(0.05)

        assert recorder.errors == []
        await scheduler.stop()


class TestClearAndStop:
    async def test_clear_stops_fetching(self):
        calls: list[str] = []

        async def fetch(target: str) -> str:
            calls.append(target)
            return "a 1\n"

        recorder = Recorder()
        scheduler = _make(fetch, recorder)
        scheduler.select("1")
        await recorder.wait(1)

        scheduler.clear()
        count = len(calls)
        await asyncio.sleep(0.05)

        assert scheduler.state is PollState.IDLE
        assert scheduler.target is None
        assert len(calls) == count
        await scheduler.stop()

    async def test_select_none_clears(self):
        recorder = Recorder()
        scheduler = _make(_payload, recorder, interval=60.0)
        scheduler.select("1")
        scheduler.select(None)
        assert scheduler.state is PollState.IDLE
        await scheduler.stop()

    async def test_clear_when_idle_is_noop(self):
        scheduler = _make(_payload, Recorder())
        scheduler.clear()
        assert scheduler.state is PollState.IDLE
        assert scheduler.generation == 0

    async def test_stop_is_terminal(self):
        recorder = Recorder()
        scheduler = _make(_payload, recorder, interval=60.0)
        scheduler.select("1")
        await recorder.wait(1)

        await scheduler.stop()
        await scheduler.stop()

        assert scheduler.state is PollState.STOPPED
        assert scheduler.target is None
        with pytest.raises(SchedulerError, match="stopped scheduler"):
            scheduler.select("2")

    async def test_stop_cancels_in_flight_fetch(self):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def fetch(target: str) -> str:
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return ""

        recorder = Recorder()
        scheduler = _make(fetch, recorder, interval=60.0)
        scheduler.select("1")
        await asyncio.wait_for(started.wait(), 1.0)

        await scheduler.stop()

        assert cancelled.is_set()
        assert recorder.snapshots == []
        assert recorder.errors == []
