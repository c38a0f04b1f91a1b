"""Tests for the mutual-exclusion gate."""

import asyncio

import pytest

from docsync.gate import ExclusiveGate


def test_guarded_sections_never_overlap():
    async def scenario():
        gate = ExclusiveGate()
        events = []

        async def action(name):
            events.append(("enter", name))
            await asyncio.sleep(0.01)
            await asyncio.sleep(0)
            events.append(("exit", name))
            return name

        results = await asyncio.gather(*(gate.run_exclusive(action, n) for n in "abc"))
        return events, results

    events, results = asyncio.run(scenario())
    assert results == ["a", "b", "c"]
    for i in range(0, len(events), 2):
        assert events[i][0] == "enter"
        assert events[i + 1] == ("exit", events[i][1])


def test_waiters_woken_in_fifo_order():
    async def scenario():
        gate = ExclusiveGate()
        order = []
        await gate.acquire()

        tasks = []
        for i in range(5):
            tasks.append(asyncio.create_task(gate.run_exclusive(order.append, i)))
            await asyncio.sleep(0)  # let it queue up before the next one

        gate.release()
        await asyncio.gather(*tasks)
        return order

    assert asyncio.run(scenario()) == [0, 1, 2, 3, 4]


def test_released_when_action_fails():
    async def scenario():
        gate = ExclusiveGate()

        async def boom():
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        waiter_ran = []
        failing = asyncio.create_task(gate.run_exclusive(boom))
        await asyncio.sleep(0)
        waiter = asyncio.create_task(gate.run_exclusive(waiter_ran.append, True))

        with pytest.raises(RuntimeError):
            await failing
        await waiter
        return gate, waiter_ran

    gate, waiter_ran = asyncio.run(scenario())
    assert waiter_ran == [True]
    assert not gate.locked()


def test_plain_callable_and_context_manager():
    async def scenario():
        gate = ExclusiveGate()
        value = await gate.run_exclusive(lambda x, y=0: x + y, 2, y=3)
        async with gate:
            held = gate.locked()
        return gate, value, held

    gate, value, held = asyncio.run(scenario())
    assert value == 5
    assert held is True
    assert not gate.locked()
    assert gate.acquisitions == 2


def test_holder_blocks_others_until_release():
    async def scenario():
        gate = ExclusiveGate()
        await gate.acquire()
        task = asyncio.create_task(gate.run_exclusive(lambda: "done"))
        await asyncio.sleep(0.01)
        blocked = not task.done()
        gate.release()
        return blocked, await task

    blocked, result = asyncio.run(scenario())
    assert blocked
    assert result == "done"
