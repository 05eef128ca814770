"""
Shared building blocks for batch drivers.

- RunLog: per-run human-readable log, returned in driver results
- WallClockBudget: elapsed-time budget checked before new work starts
- run_in_batches: fixed-size concurrent batches, strictly sequential,
  with a delay between batches

Responsibility: Bounded concurrency and time budgets for drivers
"""

import asyncio
import time
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar
import logging

T = TypeVar('T')
R = TypeVar('R')

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RunLog:
    """
    Collects driver log lines and mirrors them to a logger.

    Example:
        run_log = RunLog(logger)
        run_log.info("Found 12 bills")
        result.log = run_log.lines
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.lines: List[str] = []

    def info(self, message: str) -> None:
        self.lines.append(message)
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.lines.append(message)
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.lines.append(message)
        self.logger.error(message)


class WallClockBudget:
    """
    Elapsed-time budget for one driver run.

    The budget is only consulted before new work starts; work already in
    flight is never interrupted.
    """

    def __init__(self, limit_seconds: float, clock: Clock = time.monotonic):
        self.limit_seconds = limit_seconds
        self.clock = clock
        self.started_at = clock()

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    @property
    def remaining(self) -> float:
        return max(self.limit_seconds - self.elapsed, 0.0)

    def exceeded(self) -> bool:
        return self.elapsed > self.limit_seconds


class BatchOutcome(Generic[T, R]):
    """Per-item outcome of run_in_batches."""

    __slots__ = ("item", "result", "error")

    def __init__(self, item: T, result: Optional[R] = None, error: Optional[BaseException] = None):
        self.item = item
        self.result = result
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int,
    delay_seconds: float = 0.0,
    budget: Optional[WallClockBudget] = None,
    sleep: Sleep = asyncio.sleep,
    on_batch: Optional[Callable[[List[BatchOutcome[T, R]]], Awaitable[None]]] = None,
) -> tuple[List[BatchOutcome[T, R]], bool]:
    """
    Run ``worker`` over ``items`` in concurrent batches.

    Each batch is launched together and awaited together with settled
    semantics: one worker raising does not cancel the others. ``on_batch``
    runs after each batch (drivers persist there, sequentially).

    Args:
        items: Work units
        worker: Async callable for one unit
        batch_size: Units launched together
        delay_seconds: Pause between consecutive batches
        budget: Checked before each batch
        sleep: Awaitable used for the pause
        on_batch: Async callback receiving the batch outcomes

    Returns:
        (outcomes of the batches that ran, stopped_early)
    """
    outcomes: List[BatchOutcome[T, R]] = []
    size = max(batch_size, 1)

    for start in range(0, len(items), size):
        if budget is not None and budget.exceeded():
            return outcomes, True

        if start > 0 and delay_seconds > 0:
            await sleep(delay_seconds)

        batch = items[start:start + size]
        settled = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)

        batch_outcomes = []
        for item, value in zip(batch, settled):
            if isinstance(value, BaseException):
                batch_outcomes.append(BatchOutcome(item, error=value))
            else:
                batch_outcomes.append(BatchOutcome(item, result=value))

        outcomes.extend(batch_outcomes)
        if on_batch is not None:
            await on_batch(batch_outcomes)

    return outcomes, False
