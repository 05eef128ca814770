import asyncio

import pytest

from ledge.orchestration.batching import WallClockBudget, run_in_batches

from conftest import FakeClock, SleepRecorder


@pytest.mark.asyncio
async def test_batches_run_in_order_with_delay_between() -> None:
    sleep = SleepRecorder()
    seen = []

    async def worker(item):
        seen.append(item)
        return item * 2

    outcomes, stopped = await run_in_batches([1, 2, 3, 4, 5], worker, batch_size=2, delay_seconds=4, sleep=sleep)

    assert stopped is False
    assert [outcome.result for outcome in outcomes] == [2, 4, 6, 8, 10]
    assert sorted(seen) == [1, 2, 3, 4, 5]
    assert sleep.calls == [4, 4]


@pytest.mark.asyncio
async def test_one_failure_does_not_cancel_batch() -> None:
    async def worker(item):
        if item == 2:
            raise ValueError("boom")
        await asyncio.sleep(0)
        return item

    outcomes, _ = await run_in_batches([1, 2, 3], worker, batch_size=3)

    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, ValueError)


@pytest.mark.asyncio
async def test_budget_checked_before_each_batch() -> None:
    clock = FakeClock()
    budget = WallClockBudget(250, clock=clock)

    async def worker(item):
        clock.advance(130)
        return item

    outcomes, stopped = await run_in_batches([1, 2, 3, 4], worker, batch_size=1, budget=budget)

    assert stopped is True
    assert [outcome.item for outcome in outcomes] == [1, 2]


@pytest.mark.asyncio
async def test_on_batch_receives_each_batch() -> None:
    batches = []

    async def worker(item):
        return item

    async def on_batch(outcomes):
        batches.append([outcome.item for outcome in outcomes])

    await run_in_batches(["a", "b", "c"], worker, batch_size=2, on_batch=on_batch)

    assert batches == [["a", "b"], ["c"]]


def test_budget_is_exceeded_only_after_limit() -> None:
    clock = FakeClock()
    budget = WallClockBudget(250, clock=clock)

    clock.advance(250)
    assert budget.exceeded() is False

    clock.advance(1)
    assert budget.exceeded() is True
    assert budget.remaining == 0.0
