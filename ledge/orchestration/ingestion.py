"""
Bill ingestion.

BillIngestionPipeline turns one Congress.gov bill into a published
article. It fetches the full text, gathers research context concurrently
(news, policy research, sponsor funding; each failing to an empty value),
synthesizes the article and inserts the legislation row. A bill whose text
is not published yet is skipped and never reaches synthesis.

Two drivers feed it:

- DailyBillDriver: priority sweep of the 30 most recently updated bills;
  when all are known, archive discovery reads 20 bills starting at the
  current bill count. At most 6 new bills per run, 3 at a time.
- ImportBillsDriver: explicit count/offset bulk import; each stored bill is
  scored against every subscriber right away.

Responsibility: Fetch, research, synthesize and publish new bills
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.congress_adapter import CongressAdapter
from ..adapters.research_adapters import ExaResearchAdapter, NewsDataAdapter, OpenFECAdapter
from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository, SubscriberRepository
from ..db.session import Database
from ..llm.relevance import RelevanceEngine
from ..llm.synthesis import SynthesisService
from ..models.article import SynthesizedArticle
from ..models.bill import Bill
from ..models.results import IngestionResult
from ..utils.dedupe import filter_unknown
from .batching import BatchOutcome, Clock, RunLog, Sleep, WallClockBudget, run_in_batches
from .persistence import describe_failure, save_match
from .snapshots import BillRef, SubscriberRef

logger = logging.getLogger(__name__)

RESEARCH_QUERY_WORDS = 10


class PrepareStatus(str, Enum):
    READY = "ready"
    NO_TEXT = "no_text"
    SYNTHESIS_FAILED = "synthesis_failed"


@dataclass
class PreparedBill:
    """A bill with everything needed to insert it, or the reason it has not."""
    bill: Bill
    status: PrepareStatus
    article: Optional[SynthesizedArticle] = None
    sponsor_data: Optional[Dict[str, Any]] = None
    news_context: List[dict] = field(default_factory=list)
    policy_research: List[dict] = field(default_factory=list)


def research_query(bill: Bill) -> str:
    """News/research query: bill id plus the first words of the title."""
    words = bill.title.split()[:RESEARCH_QUERY_WORDS]
    return f"{bill.bill_id} {' '.join(words)}".strip()


class BillIngestionPipeline:
    """
    Example:
        pipeline = BillIngestionPipeline(CongressAdapter(), SynthesisService(get_llm_client()))
        prepared = await pipeline.prepare(bill)
        if prepared.status == PrepareStatus.READY:
            await pipeline.store(session, prepared)
    """

    def __init__(
        self,
        congress: CongressAdapter,
        synthesis: SynthesisService,
        news: Optional[NewsDataAdapter] = None,
        exa: Optional[ExaResearchAdapter] = None,
        fec: Optional[OpenFECAdapter] = None,
    ):
        self.congress = congress
        self.synthesis = synthesis
        self.news = news or NewsDataAdapter()
        self.exa = exa or ExaResearchAdapter()
        self.fec = fec or OpenFECAdapter()

    async def _research(self, bill: Bill) -> tuple[Optional[dict], List[dict], List[dict]]:
        query = research_query(bill)
        sponsor = bill.primary_sponsor

        async def sponsor_funding():
            if sponsor is None:
                return None
            return await self.fec.fetch(sponsor_name=sponsor.name)

        funding, news, research = await asyncio.gather(
            sponsor_funding(),
            self.news.fetch(query=query),
            self.exa.fetch(bill_title=query),
            return_exceptions=True,
        )

        def records(name: str, response: Any) -> list:
            if isinstance(response, BaseException):
                logger.error(f"Research source {name} failed for {bill.bill_id}: {response}")
                return []
            if response is None:
                return []
            return [record.model_dump() for record in response.records]

        funding_records = records("openfec", funding)
        return (
            funding_records[0] if funding_records else None,
            records("newsdata", news),
            records("exa", research),
        )

    async def prepare(self, bill: Bill) -> PreparedBill:
        """
        Fetch text, research and synthesize; no database access.

        Returns:
            PreparedBill with status NO_TEXT when the text is not available,
            SYNTHESIS_FAILED when no valid article came back, READY otherwise
        """
        text = await self.congress.fetch_bill_text(bill.bill_id)
        if not text:
            logger.info(f"Bill text not yet available for {bill.bill_id}")
            return PreparedBill(bill=bill, status=PrepareStatus.NO_TEXT)

        sponsor_data, news_context, policy_research = await self._research(bill)

        article = await self.synthesis.synthesize(
            bill,
            text,
            sponsor_info=sponsor_data,
            news_context=news_context,
            policy_research=policy_research,
        )
        if article is None:
            return PreparedBill(bill=bill, status=PrepareStatus.SYNTHESIS_FAILED)

        return PreparedBill(
            bill=bill,
            status=PrepareStatus.READY,
            article=article,
            sponsor_data=sponsor_data,
            news_context=news_context,
            policy_research=policy_research,
        )

    async def store(self, session: AsyncSession, prepared: PreparedBill) -> Optional[BillRef]:
        """
        Insert a prepared bill and commit.

        Returns:
            Snapshot of the stored row, or None when the insert failed
        """
        try:
            model = await BillRepository(session).create_from_synthesis(
                prepared.bill,
                prepared.article,
                sponsor_data=prepared.sponsor_data,
                news_context=prepared.news_context,
                policy_research=prepared.policy_research,
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Failed to insert {prepared.bill.bill_id}: {e}")
            return None
        return BillRef.from_model(model)

    def record(self, result: IngestionResult, run_log: RunLog, prepared: PreparedBill) -> bool:
        """Count a non-ready outcome; True when the bill is ready to store."""
        bill_id = prepared.bill.bill_id
        if prepared.status == PrepareStatus.NO_TEXT:
            result.skipped.append(bill_id)
            run_log.info(f"SKIPPED {bill_id}: bill text not yet available")
            return False
        if prepared.status == PrepareStatus.SYNTHESIS_FAILED:
            result.failed.append(bill_id)
            run_log.error(f"FAILED {bill_id}: synthesis produced no valid article")
            return False
        return True

    async def close(self) -> None:
        for adapter in (self.congress, self.news, self.exa, self.fec):
            await adapter.close()


class _IngestionDriver:
    def __init__(
        self,
        database: Database,
        pipeline: BillIngestionPipeline,
        config: Optional[ScoringConfig] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.database = database
        self.pipeline = pipeline
        self.config = config or settings.scoring
        self.clock = clock
        self.sleep = sleep

    def _finish(self, result: IngestionResult, run_log: RunLog, budget: WallClockBudget) -> IngestionResult:
        run_log.info(
            f"Processed: {len(result.processed)}, Skipped (no text): {len(result.skipped)}, "
            f"Failed: {len(result.failed)}, Matches: {result.total_matches}"
        )
        result.duration_seconds = round(budget.elapsed, 2)
        result.log = run_log.lines
        return result


class DailyBillDriver(_IngestionDriver):
    """
    Example:
        driver = DailyBillDriver(db, pipeline)
        result = await driver.run()
    """

    async def run(self) -> IngestionResult:
        run_log = RunLog(logger)
        result = IngestionResult(mode="priority")
        budget = WallClockBudget(self.config.ingest_budget_seconds, clock=self.clock)

        try:
            await self._run(result, run_log, budget)
        except Exception as e:
            logger.exception("Daily bill ingestion failed")
            result.success = False
            result.error = str(e)

        return self._finish(result, run_log, budget)

    async def _select(self, result: IngestionResult, run_log: RunLog) -> List[Bill]:
        cfg = self.config
        congress = self.pipeline.congress

        run_log.info(f"Priority sweep: checking {cfg.priority_sweep_size} most recent bills")
        response = await congress.fetch(limit=cfg.priority_sweep_size, offset=0)
        fetched = response.records

        async with self.database.session() as session:
            bills = BillRepository(session)
            known = await bills.existing_bill_ids(bill.bill_id for bill in fetched)
            fresh = filter_unknown(fetched, lambda bill: bill.bill_id, known)
            if fresh:
                return fresh

            offset = await bills.count()
            run_log.info(f"Priority sweep found no new bills, archive discovery from offset {offset}")
            result.mode = "archive"
            response = await congress.fetch(limit=cfg.archive_batch_size, offset=offset)
            archive = response.records
            known = await bills.existing_bill_ids(bill.bill_id for bill in archive)
            return filter_unknown(archive, lambda bill: bill.bill_id, known)

    async def _run(self, result: IngestionResult, run_log: RunLog, budget: WallClockBudget) -> None:
        cfg = self.config
        candidates = (await self._select(result, run_log))[:cfg.ingest_max_per_run]
        if not candidates:
            run_log.info("No new bills to process")
            return

        run_log.info(f"Processing {len(candidates)} bills, {cfg.ingest_concurrency} at a time")

        async with self.database.session() as session:

            async def store(outcomes: List[BatchOutcome[Bill, PreparedBill]]) -> None:
                for outcome in outcomes:
                    bill_id = outcome.item.bill_id
                    if not outcome.ok:
                        result.failed.append(bill_id)
                        run_log.error(f"FAILED {bill_id}: {outcome.error}")
                        continue
                    if not self.pipeline.record(result, run_log, outcome.result):
                        continue
                    if await BillRepository(session).get_by_bill_id(bill_id) is not None:
                        result.skipped.append(bill_id)
                        run_log.info(f"SKIPPED {bill_id}: already exists")
                        continue
                    if await self.pipeline.store(session, outcome.result) is None:
                        result.failed.append(bill_id)
                        continue
                    result.processed.append(bill_id)
                    run_log.info(f"Published {bill_id}")

            _, stopped = await run_in_batches(
                candidates,
                self.pipeline.prepare,
                batch_size=cfg.ingest_concurrency,
                budget=budget,
                sleep=self.sleep,
                on_batch=store,
            )
            result.stopped_early = stopped


class ImportBillsDriver(_IngestionDriver):
    """
    Bulk import with immediate scoring.

    Example:
        driver = ImportBillsDriver(db, pipeline, get_relevance_engine())
        result = await driver.run(count=20, offset=0)
    """

    def __init__(
        self,
        database: Database,
        pipeline: BillIngestionPipeline,
        engine: RelevanceEngine,
        config: Optional[ScoringConfig] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        super().__init__(database, pipeline, config=config, clock=clock, sleep=sleep)
        self.engine = engine

    async def run(self, count: int = 20, offset: int = 0) -> IngestionResult:
        run_log = RunLog(logger)
        result = IngestionResult(mode="import")
        budget = WallClockBudget(self.config.ingest_budget_seconds, clock=self.clock)

        try:
            await self._run(count, offset, result, run_log, budget)
        except Exception as e:
            logger.exception("Bill import failed")
            result.success = False
            result.error = str(e)

        return self._finish(result, run_log, budget)

    async def _run(
        self,
        count: int,
        offset: int,
        result: IngestionResult,
        run_log: RunLog,
        budget: WallClockBudget,
    ) -> None:
        count = max(1, min(count, self.config.import_max_count))
        offset = max(0, offset)
        run_log.info(f"Starting bulk import: {count} bills (offset {offset})")

        response = await self.pipeline.congress.fetch(limit=count, offset=offset)
        fetched = response.records
        if not fetched:
            run_log.warning("No bills returned from Congress.gov")
            return

        async with self.database.session() as session:
            bills = BillRepository(session)
            known = await bills.existing_bill_ids(bill.bill_id for bill in fetched)
            subscribers = [
                SubscriberRef.from_model(model)
                for model in await SubscriberRepository(session).list_with_goal()
            ]

            for bill in fetched:
                if budget.exceeded():
                    result.stopped_early = True
                    run_log.warning("Budget exhausted, stopping import")
                    break

                if bill.bill_id in known:
                    result.skipped.append(bill.bill_id)
                    run_log.info(f"SKIPPED {bill.bill_id}: already exists")
                    continue

                try:
                    prepared = await self.pipeline.prepare(bill)
                except Exception as e:
                    result.failed.append(bill.bill_id)
                    run_log.error(f"FAILED {bill.bill_id}: {e}")
                    continue

                if not self.pipeline.record(result, run_log, prepared):
                    continue

                stored = await self.pipeline.store(session, prepared)
                if stored is None:
                    result.failed.append(bill.bill_id)
                    continue

                known.add(bill.bill_id)
                result.processed.append(bill.bill_id)
                matches = await self._score(session, stored, subscribers, run_log)
                result.total_matches += matches
                run_log.info(f"Published {bill.bill_id}, {matches} matches across {len(subscribers)} subscribers")

    async def _score(
        self,
        session: AsyncSession,
        bill: BillRef,
        subscribers: List[SubscriberRef],
        run_log: RunLog,
    ) -> int:
        matches = 0
        for subscriber in subscribers:
            if not subscriber.wants(bill):
                continue
            outcome = await self.engine.score_bill_for_goal(bill.title, bill.summary, subscriber.combined_goal)
            if not outcome.is_scored:
                run_log.warning(f"Score unavailable for {bill.bill_id}: {describe_failure(outcome)}")
                if outcome.rate_limited:
                    await self.sleep(self.config.rate_limit_backoff_seconds)
                continue
            saved = await save_match(session, subscriber.id, bill.id, outcome, run_log)
            if saved and outcome.match_score > 0:
                matches += 1
        return matches
