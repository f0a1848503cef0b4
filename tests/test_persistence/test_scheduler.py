"""Tests for the debounce timer."""

import asyncio

import pytest

from lessonquiz.persistence.scheduler import DebounceTimer


class Recorder:
    def __init__(self):
        self.calls: list[str] = []

    def callback(self, label: str):
        async def run() -> None:
            self.calls.append(label)

        return run


class TestDebounceTimer:
    """Test single-slot scheduling."""

    @pytest.mark.asyncio
    async def test_reschedule_keeps_only_latest(self):
        """Test that a burst produces one call with the last callback."""
        recorder = Recorder()
        timer = DebounceTimer(0.05)

        timer.schedule(recorder.callback("first"))
        timer.schedule(recorder.callback("second"))
        await asyncio.sleep(0.15)
        await timer.drain()

        assert recorder.calls == ["second"]
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_cancel(self):
        """Test that a cancelled callback never runs."""
        recorder = Recorder()
        timer = DebounceTimer(0.05)

        timer.schedule(recorder.callback("x"))
        assert timer.cancel()
        await asyncio.sleep(0.1)

        assert recorder.calls == []
        assert not timer.cancel()

    @pytest.mark.asyncio
    async def test_flush_runs_now(self):
        """Test that flush runs the pending callback immediately, once."""
        recorder = Recorder()
        timer = DebounceTimer(10.0)

        timer.schedule(recorder.callback("now"))
        assert await timer.flush()
        assert not await timer.flush()

        assert recorder.calls == ["now"]

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_timer(self):
        """Test that an exception in a fired callback is contained."""
        recorder = Recorder()
        timer = DebounceTimer(0.01)

        async def boom() -> None:
            raise RuntimeError("save failed")

        timer.schedule(boom)
        await asyncio.sleep(0.05)
        await timer.drain()

        timer.schedule(recorder.callback("after"))
        await asyncio.sleep(0.05)
        await timer.drain()

        assert recorder.calls == ["after"]

    def test_schedule_without_running_loop(self):
        """Test that scheduling from synchronous code is skipped instead of raising."""
        recorder = Recorder()
        timer = DebounceTimer(0.01)

        assert timer.schedule(recorder.callback("sync")) is False
        assert not timer.pending
        assert recorder.calls == []
