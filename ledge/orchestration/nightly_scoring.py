"""
Nightly incremental scorer.

Scores bills published in the last 48 hours against every subscriber with
a goal, skipping pairs that already have a match and state bills outside
the subscriber's state focus. Scoring is sequential with fixed pauses to
stay under the LLM provider's rate limits, and stops launching new work
once the wall-clock budget is spent.

Responsibility: Keep matches current for newly ingested bills
"""

import asyncio
import time
from datetime import timedelta
from typing import Optional
import logging

from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository, MatchRepository, SubscriberRepository
from ..db.session import Database
from ..llm.relevance import RelevanceEngine
from ..models.results import NightlyScoringResult
from ..utils.clock import utcnow
from .batching import Clock, RunLog, Sleep, WallClockBudget
from .persistence import describe_failure, save_match
from .snapshots import SubscriberRef, bill_refs

logger = logging.getLogger(__name__)


class NightlyScoringDriver:
    """
    Example:
        driver = NightlyScoringDriver(db, get_relevance_engine())
        result = await driver.run()
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

    async def run(self) -> NightlyScoringResult:
        run_log = RunLog(logger)
        result = NightlyScoringResult()
        budget = WallClockBudget(self.config.nightly_budget_seconds, clock=self.clock)

        try:
            await self._run(result, run_log, budget)
        except Exception as e:
            logger.exception("Nightly scoring failed")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(budget.elapsed, 2)
        result.log = run_log.lines
        return result

    async def _run(self, result: NightlyScoringResult, run_log: RunLog, budget: WallClockBudget) -> None:
        cfg = self.config
        cutoff = utcnow() - timedelta(hours=cfg.nightly_window_hours)

        async with self.database.session() as session:
            bills = bill_refs(await BillRepository(session).list_published_since(cutoff))
            if not bills:
                run_log.info("No recent bills to score")
                return

            subscribers = [
                SubscriberRef.from_model(model)
                for model in await SubscriberRepository(session).list_with_goal()
            ]
            result.bills = len(bills)
            result.subscribers = len(subscribers)
            if not subscribers:
                run_log.info("No subscribers to score against")
                return

            matched = await MatchRepository(session).matched_pairs(bill.id for bill in bills)
            run_log.info(
                f"Scoring {len(bills)} recent bills against {len(subscribers)} subscribers "
                f"({len(matched)} pairs already matched)"
            )

            for subscriber in subscribers:
                if budget.exceeded():
                    result.stopped_early = True
                    run_log.warning("Budget exhausted, stopping before next subscriber")
                    break

                pending = [
                    bill for bill in bills
                    if (subscriber.id, bill.id) not in matched and subscriber.wants(bill)
                ]
                if not pending:
                    continue

                run_log.info(f"Scoring {len(pending)} bills for subscriber {subscriber.id}")
                goal = subscriber.combined_goal

                for bill in pending:
                    if budget.exceeded():
                        result.stopped_early = True
                        break

                    outcome = await self.engine.score_bill_for_goal(bill.title, bill.summary, goal)
                    if not outcome.is_scored:
                        result.failed += 1
                        run_log.warning(f"Score unavailable for {bill.bill_id}: {describe_failure(outcome)}")
                        if outcome.rate_limited:
                            await self.sleep(cfg.rate_limit_backoff_seconds)
                    else:
                        result.scored += 1
                        if await save_match(session, subscriber.id, bill.id, outcome, run_log):
                            matched.add((subscriber.id, bill.id))
                            if outcome.match_score > 0:
                                result.new_matches += 1
                        else:
                            result.failed += 1
                        if outcome.rate_limited:
                            await self.sleep(cfg.rate_limit_backoff_seconds)

                    await self.sleep(cfg.nightly_bill_delay_seconds)

                if result.stopped_early:
                    run_log.warning("Budget exhausted, stopping early")
                    break

                await self.sleep(cfg.nightly_subscriber_delay_seconds)

        run_log.info(
            f"Nightly scoring complete: {result.scored} scored, "
            f"{result.new_matches} new matches, {result.failed} failed"
        )
