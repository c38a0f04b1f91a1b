"""Tests for the cyclic update trigger."""

import asyncio

import pytest

from docsync.sync.scheduler import CyclicUpdater


class SlowEngine:
    """Engine stand-in whose update pass takes a while and may fail."""

    def __init__(self, delay=0.05, fail=False):
        self.delay = delay
        self.fail = fail
        self.calls = 0
        self.running = 0
        self.max_running = 0

    async def update(self):
        self.calls += 1
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await asyncio.sleep(self.delay)
            if self.fail:
                raise RuntimeError("pass failed")
        finally:
            self.running -= 1


def test_overlapping_tick_skipped():
    async def scenario():
        engine = SlowEngine()
        updater = CyclicUpdater(engine, interval=10)
        first = updater.tick()
        second = updater.tick()
        await first
        third = updater.tick()
        await third
        return engine, updater, second

    engine, updater, second = asyncio.run(scenario())
    assert second is None
    assert updater.passes_skipped == 1
    assert updater.passes_started == 2
    assert engine.max_running == 1


def test_overlap_allowed():
    async def scenario():
        engine = SlowEngine()
        updater = CyclicUpdater(engine, interval=10, allow_overlap=True)
        tasks = [updater.tick(), updater.tick()]
        await asyncio.gather(*tasks)
        return engine

    engine = asyncio.run(scenario())
    assert engine.calls == 2
    assert engine.max_running == 2


def test_failures_do_not_stop_the_loop():
    async def scenario():
        engine = SlowEngine(delay=0, fail=True)
        updater = CyclicUpdater(engine, interval=0.01)
        updater.start()
        await asyncio.sleep(0.1)
        still_running = updater.running
        await updater.stop()
        return engine, updater, still_running

    engine, updater, still_running = asyncio.run(scenario())
    assert still_running
    assert engine.calls >= 2
    assert not updater.running


def test_stop_waits_for_in_flight_pass():
    async def scenario():
        engine = SlowEngine(delay=0.05)
        updater = CyclicUpdater(engine, interval=10)
        updater.start()
        updater.tick()
        await updater.stop()
        return engine

    engine = asyncio.run(scenario())
    assert engine.calls == 1
    assert engine.running == 0


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        CyclicUpdater(SlowEngine(), interval=0)
