import asyncio
import logging

from slideshow.scheduler import LoopScheduler, RepeatingTimer


def test_repeating_timer_fires_until_cancelled():
    calls = []

    async def scenario():
        timer = RepeatingTimer(0.01, lambda: calls.append(1))
        timer.start()
        assert timer.active
        await asyncio.sleep(0.1)
        timer.cancel()
        fired = len(calls)
        await asyncio.sleep(0.05)
        return fired, timer.active

    fired, active = asyncio.run(scenario())

    assert fired >= 2
    assert len(calls) == fired
    assert not active


def test_repeating_timer_survives_failing_callback(caplog):
    calls = []

    def callback():
        calls.append(1)
        raise RuntimeError("boom")

    async def scenario():
        timer = RepeatingTimer(0.01, callback)
        timer.start()
        await asyncio.sleep(0.08)
        timer.cancel()

    with caplog.at_level(logging.ERROR, logger="slideshow.scheduler"):
        asyncio.run(scenario())

    assert len(calls) >= 2
    assert "timer callback failed" in caplog.text


def test_after_and_cancel():
    fired = []

    async def scenario():
        scheduler = LoopScheduler()
        scheduler.after(0.01, lambda: fired.append("kept"))
        cancelled = scheduler.after(0.01, lambda: fired.append("cancelled"))
        cancelled.cancel()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert fired == ["kept"]


def test_spawn_logs_failures(caplog):
    async def failing():
        raise ValueError("bad response")

    async def scenario():
        scheduler = LoopScheduler()
        scheduler.spawn(failing())
        await asyncio.sleep(0.01)
        await scheduler.stop()

    with caplog.at_level(logging.ERROR, logger="slideshow.scheduler"):
        asyncio.run(scenario())

    assert "background task failed" in caplog.text
