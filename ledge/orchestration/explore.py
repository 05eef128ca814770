"""
Exploration drivers.

- explore_topic: ad hoc search; quick-scores recent published bills
  against a free-text query and returns the best hits. Nothing is stored.
- explore_state: pulls a state's recent bills from LegiScan, stores the
  unknown ones, scores them against the subscriber's goal with the state
  threshold and records the matches under a "State: XX" interest.

Responsibility: Topic and state discovery for one subscriber
"""

import asyncio
import time
from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..adapters.legiscan_adapter import LegiScanAdapter
from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository, SubscriberRepository
from ..db.repositories.match_repository import interest_marker
from ..db.session import Database
from ..llm.relevance import RelevanceEngine
from ..models.relevance import RelevanceResult
from ..models.results import ExploreHit, ExploreResult, StateExploreResult
from .batching import BatchOutcome, Clock, RunLog, Sleep, WallClockBudget, run_in_batches
from .persistence import describe_failure, save_match
from .snapshots import BillRef, SubscriberRef, bill_refs

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


def state_interest(state: str) -> str:
    """Interest label recorded for state discovery, e.g. "State: CA"."""
    return f"State: {state.upper()}"


class ExploreDriver:
    """
    Example:
        driver = ExploreDriver(db, get_relevance_engine(), LegiScanAdapter())
        found = await driver.explore_topic("wildfire insurance")
    """

    def __init__(
        self,
        database: Database,
        engine: RelevanceEngine,
        legiscan: Optional[LegiScanAdapter] = None,
        config: Optional[ScoringConfig] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.database = database
        self.engine = engine
        self.legiscan = legiscan
        self.config = config or settings.scoring
        self.clock = clock
        self.sleep = sleep

    async def explore_topic(self, query: str) -> ExploreResult:
        """
        Quick-score recent bills against ``query``.

        Raises:
            ValueError: If the query is shorter than two characters
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            raise ValueError("A search query of at least 2 characters is required")

        cfg = self.config
        run_log = RunLog(logger)
        result = ExploreResult(query=query)
        budget = WallClockBudget(cfg.explore_budget_seconds, clock=self.clock)

        try:
            async with self.database.session() as session:
                bills = bill_refs(await BillRepository(session).list_published(limit=cfg.explore_bill_limit))

            async def score(bill: BillRef) -> RelevanceResult:
                return await self.engine.quick_score(bill.title, bill.summary, query)

            outcomes, stopped = await run_in_batches(
                bills,
                score,
                batch_size=cfg.batch_size,
                delay_seconds=cfg.batch_delay_seconds,
                budget=budget,
                sleep=self.sleep,
            )
            result.stopped_early = stopped
            result.total_scored = len(outcomes)

            hits: List[ExploreHit] = []
            for outcome in outcomes:
                if not outcome.ok or not outcome.result.is_scored:
                    result.failed += 1
                    continue
                if outcome.result.match_score < cfg.explore_min_score:
                    continue
                bill = outcome.item
                hits.append(ExploreHit(
                    legislation_id=bill.id,
                    bill_id=bill.bill_id,
                    title=bill.title,
                    url_slug=bill.url_slug,
                    tldr=bill.tldr,
                    status=bill.status,
                    explore_score=outcome.result.match_score,
                ))

            hits.sort(key=lambda hit: hit.explore_score, reverse=True)
            result.results = hits[:cfg.explore_max_results]
            run_log.info(
                f"Explore '{query}': {result.total_scored} scored, {len(result.results)} results"
            )
        except Exception as e:
            logger.exception(f"Explore failed for '{query}'")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(budget.elapsed, 2)
        result.log = run_log.lines
        return result

    async def explore_state(self, subscriber: SubscriberRef, state: str) -> StateExploreResult:
        """Discover a state's recent bills and match them for one subscriber."""
        state = state.upper()
        cfg = self.config
        run_log = RunLog(logger)
        result = StateExploreResult(state=state)
        budget = WallClockBudget(cfg.explore_budget_seconds, clock=self.clock)

        try:
            await self._explore_state(subscriber, state, result, run_log, budget)
        except Exception as e:
            logger.exception(f"State explore failed for {state}")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(budget.elapsed, 2)
        result.log = run_log.lines
        return result

    async def _explore_state(
        self,
        subscriber: SubscriberRef,
        state: str,
        result: StateExploreResult,
        run_log: RunLog,
        budget: WallClockBudget,
    ) -> None:
        cfg = self.config
        legiscan = self.legiscan or LegiScanAdapter()

        state_bills = await legiscan.fetch_state_bills(state, limit=cfg.state_bill_limit)
        result.fetched = len(state_bills)
        if not state_bills:
            run_log.info(f"No bills found for {state}")
            return

        interest = state_interest(state)
        goal = subscriber.combined_goal

        async with self.database.session() as session:
            bills = BillRepository(session)
            refs: List[BillRef] = []
            for state_bill in state_bills:
                try:
                    model, created = await bills.get_or_create_state_bill(state_bill)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    result.failed += 1
                    run_log.error(f"Failed to store {state_bill.bill_id}: {e}")
                    continue
                if created:
                    result.inserted += 1
                refs.append(BillRef(
                    id=model.id,
                    bill_id=model.bill_id,
                    title=state_bill.title,
                    summary=state_bill.description or state_bill.title,
                    state_code=state,
                ))

            async def score(bill: BillRef) -> RelevanceResult:
                return await self.engine.score_bill_for_goal(
                    bill.title, bill.summary, goal, threshold=cfg.state_threshold
                )

            async def persist(outcomes: List[BatchOutcome[BillRef, RelevanceResult]]) -> None:
                for outcome in outcomes:
                    if not outcome.ok or not outcome.result.is_scored:
                        result.failed += 1
                        reason = outcome.error if not outcome.ok else describe_failure(outcome.result)
                        run_log.warning(f"Score unavailable for {outcome.item.bill_id}: {reason}")
                        continue
                    if outcome.result.match_score < cfg.state_threshold:
                        continue
                    saved = await save_match(
                        session,
                        subscriber.id,
                        outcome.item.id,
                        outcome.result,
                        run_log,
                        summary_prefix=interest_marker(interest),
                    )
                    if saved:
                        result.added += 1
                    else:
                        result.failed += 1

            _, stopped = await run_in_batches(
                refs,
                score,
                batch_size=cfg.batch_size,
                delay_seconds=cfg.batch_delay_seconds,
                budget=budget,
                sleep=self.sleep,
                on_batch=persist,
            )
            result.stopped_early = stopped

            if result.added:
                subscribers = SubscriberRepository(session)
                model = await subscribers.get_by_id(subscriber.id)
                if model is not None and await subscribers.add_interest(model, interest):
                    await session.commit()
                    run_log.info(f"Added interest '{interest}' for subscriber {subscriber.id}")

        run_log.info(
            f"State explore {state}: fetched {result.fetched}, inserted {result.inserted}, "
            f"added {result.added} matches"
        )
