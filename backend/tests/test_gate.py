import asyncio

import pytest

from shm_agent.services.gate import GateTimeoutError, OperationGate


def test_acquire_release_toggles_state():
    async def scenario():
        gate = OperationGate()
        assert gate.status().is_locked is False
        await gate.acquire()
        assert gate.is_locked is True
        assert gate.queue_length == 0
        gate.release()
        assert gate.is_locked is False

    asyncio.run(scenario())


def test_waiters_are_admitted_in_arrival_order():
    async def scenario():
        gate = OperationGate()
        order: list[int] = []

        async def worker(i: int):
            async with gate.hold():
                order.append(i)
                await asyncio.sleep(0)

        await gate.acquire()
        tasks = [asyncio.create_task(worker(i)) for i in range(5)]
        await asyncio.sleep(0)
        assert gate.queue_length == 5
        assert gate.is_locked is True

        gate.release()
        await asyncio.gather(*tasks)
        assert gate.is_locked is False
        assert gate.queue_length == 0
        return order

    assert asyncio.run(scenario()) == [0, 1, 2, 3, 4]


def test_only_one_task_inside_at_a_time():
    async def scenario():
        gate = OperationGate()
        inside = 0
        peak = 0

        async def work():
            nonlocal inside, peak
            inside += 1
            peak = max(peak, inside)
            for _ in range(3):
                await asyncio.sleep(0)
            inside -= 1
            return True

        results = await asyncio.gather(*(gate.run(work) for _ in range(10)))
        return peak, results

    peak, results = asyncio.run(scenario())
    assert peak == 1
    assert all(results)


def test_failing_task_releases_gate():
    async def scenario():
        gate = OperationGate()

        async def boom():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await gate.run(boom)
        assert gate.is_locked is False

        async def ok():
            return 42

        assert await gate.run(ok) == 42

    asyncio.run(scenario())


def test_release_without_hold_is_an_error():
    gate = OperationGate()
    with pytest.raises(RuntimeError):
        gate.release()


def test_acquire_timeout_leaves_queue_clean():
    async def scenario():
        gate = OperationGate(acquire_timeout=0.05)
        await gate.acquire()

        with pytest.raises(GateTimeoutError) as ei:
            await gate.acquire()
        assert ei.value.status_code == 503
        assert gate.queue_length == 0
        assert gate.is_locked is True

        gate.release()
        assert gate.is_locked is False

    asyncio.run(scenario())


def test_waiter_cancelled_after_handoff_passes_the_gate_on():
    async def scenario():
        gate = OperationGate()
        await gate.acquire()

        first = asyncio.create_task(gate.acquire())
        second = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)

        # hand the gate to `first`, then cancel it before it resumes
        gate.release()
        first.cancel()

        await asyncio.wait_for(second, 1)
        assert first.cancelled()
        assert gate.is_locked is True
        assert gate.queue_length == 0

        gate.release()
        assert gate.is_locked is False

    asyncio.run(scenario())


def test_waiter_timing_out_after_handoff_passes_the_gate_on():
    async def scenario():
        gate = OperationGate()
        await gate.acquire()

        async def timed_waiter():
            try:
                await gate.acquire(timeout=5)
            except asyncio.CancelledError:
                return False
            # older wait_for returns a finished result despite the cancel
            gate.release()
            return True

        first = asyncio.create_task(timed_waiter())
        second = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        assert gate.queue_length == 2

        # the timed waiter owns the gate but is interrupted before resuming
        gate.release()
        first.cancel()

        await asyncio.wait_for(second, 1)
        assert gate.is_locked is True
        assert gate.queue_length == 0
        gate.release()
        assert gate.is_locked is False

    asyncio.run(scenario())


def test_acquire_timeout_racing_a_handoff_keeps_gate_consistent():
    async def scenario():
        gate = OperationGate(acquire_timeout=0.01)
        await gate.acquire()

        waiter = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        gate.release()
        try:
            await waiter
            owned = True
        except GateTimeoutError:
            owned = False

        if owned:
            gate.release()
        assert gate.is_locked is False
        assert gate.queue_length == 0

    asyncio.run(scenario())


def test_cancelled_waiter_does_not_block_the_next_one():
    async def scenario():
        gate = OperationGate()
        await gate.acquire()

        first = asyncio.create_task(gate.acquire())
        second = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        assert gate.queue_length == 2

        first.cancel()
        await asyncio.sleep(0)
        assert gate.queue_length == 1

        gate.release()
        await asyncio.wait_for(second, 1)
        assert gate.is_locked is True
        gate.release()
        assert gate.is_locked is False

    asyncio.run(scenario())
