"""
On-demand matching for a single subscriber.

- MatchExistingDriver: backfill after onboarding or a goal change; scores
  the most recent published bills that have no match yet, in concurrent
  batches of five under a short wall-clock budget.
- explain_match: full structured judgment for one (subscriber, bill) pair,
  upserted so the dashboard can show summary and implications.

Responsibility: Subscriber-triggered scoring
"""

import asyncio
import time
from typing import List, Optional
import logging

from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository, MatchRepository
from ..db.session import Database
from ..llm.relevance import RelevanceEngine
from ..models.relevance import RelevanceResult
from ..models.results import MatchExistingResult
from .batching import BatchOutcome, Clock, RunLog, Sleep, WallClockBudget, run_in_batches
from .persistence import describe_failure, save_match
from .snapshots import BillRef, SubscriberRef, bill_refs

logger = logging.getLogger(__name__)


class MatchExistingDriver:
    """
    Example:
        driver = MatchExistingDriver(db, get_relevance_engine())
        result = await driver.run(SubscriberRef.from_model(subscriber))
    """

    def __init__(
        self,
        database: Database,
        engine: RelevanceEngine,
        config: Optional[ScoringConfig] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.database = database
        self.engine = engine
        self.config = config or settings.scoring
        self.clock = clock
        self.sleep = sleep

    async def run(self, subscriber: SubscriberRef) -> MatchExistingResult:
        run_log = RunLog(logger)
        result = MatchExistingResult()
        budget = WallClockBudget(self.config.match_existing_budget_seconds, clock=self.clock)

        try:
            await self._run(subscriber, result, run_log, budget)
        except Exception as e:
            logger.exception(f"Match existing failed for subscriber {subscriber.id}")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(budget.elapsed, 2)
        result.log = run_log.lines
        return result

    async def _run(
        self,
        subscriber: SubscriberRef,
        result: MatchExistingResult,
        run_log: RunLog,
        budget: WallClockBudget,
    ) -> None:
        cfg = self.config
        goal = subscriber.combined_goal

        async with self.database.session() as session:
            bills = bill_refs(await BillRepository(session).list_published(limit=cfg.match_existing_limit))
            if not bills:
                result.message = "No bills in database"
                return

            already = await MatchRepository(session).matched_legislation_ids(subscriber.id)
            pending = [bill for bill in bills if bill.id not in already and subscriber.wants(bill)]
            result.total = len(pending)

            if not pending:
                result.matched = len(already)
                result.message = "All bills already scored"
                return

            run_log.info(f"Scoring {len(pending)} unmatched bills for subscriber {subscriber.id}")

            async def score(bill: BillRef) -> RelevanceResult:
                return await self.engine.score_bill_for_goal(bill.title, bill.summary, goal)

            async def persist(outcomes: List[BatchOutcome[BillRef, RelevanceResult]]) -> None:
                for outcome in outcomes:
                    bill = outcome.item
                    if not outcome.ok:
                        result.failed += 1
                        run_log.error(f"Scoring {bill.bill_id} raised: {outcome.error}")
                        continue
                    if not outcome.result.is_scored:
                        result.failed += 1
                        run_log.warning(f"Score unavailable for {bill.bill_id}: {describe_failure(outcome.result)}")
                        continue

                    result.scored += 1
                    if not await save_match(session, subscriber.id, bill.id, outcome.result, run_log):
                        result.failed += 1
                    elif outcome.result.match_score > 0:
                        result.matched += 1

                if any(o.ok and o.result.rate_limited for o in outcomes):
                    await self.sleep(cfg.rate_limit_backoff_seconds)

            _, stopped = await run_in_batches(
                pending,
                score,
                batch_size=cfg.batch_size,
                delay_seconds=cfg.batch_delay_seconds,
                budget=budget,
                sleep=self.sleep,
                on_batch=persist,
            )
            result.stopped_early = stopped
            if stopped:
                run_log.warning("Budget exhausted, remaining bills left for the nightly run")

        result.message = f"Scored {result.scored} bills, found {result.matched} matches"
        run_log.info(result.message)


async def explain_match(
    database: Database,
    engine: RelevanceEngine,
    subscriber: SubscriberRef,
    bill: BillRef,
) -> RelevanceResult:
    """
    Run the full check for one pair and store it.

    Returns:
        The full-check outcome; unavailable outcomes are returned unsaved
    """
    outcome = await engine.full_check(bill.title, bill.summary, subscriber.combined_goal)
    if not outcome.is_scored:
        logger.warning(f"Explain unavailable for {bill.bill_id}: {describe_failure(outcome)}")
        return outcome

    async with database.session() as session:
        await MatchRepository(session).upsert(subscriber.id, bill.id, outcome)

    logger.info(f"Explained {bill.bill_id} for subscriber {subscriber.id}: {outcome.match_score}")
    return outcome
