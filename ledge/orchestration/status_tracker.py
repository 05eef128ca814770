"""
Bill status cron.

Re-reads the latest action of every tracked federal bill from Congress.gov.
When the action text changed, the bill's status fields are rewritten; when
the new status is a significant forward move, every starred copy of the
bill is flagged so subscribers see an "updated" badge.

Responsibility: Keep bill status current and highlight starred changes
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..adapters.congress_adapter import CongressAdapter
from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository, StarredBillRepository
from ..db.session import Database
from ..models.results import StatusCheckResult
from ..utils.bill_status import is_significant_change, parse_status_from_action
from .batching import Clock, RunLog, Sleep, WallClockBudget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackedBill:
    id: int
    bill_id: str
    action_text: str
    status: Optional[str]


class BillStatusDriver:
    """
    Example:
        driver = BillStatusDriver(db, CongressAdapter())
        result = await driver.run()
    """

    def __init__(
        self,
        database: Database,
        congress: Optional[CongressAdapter] = None,
        config: Optional[ScoringConfig] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.database = database
        self.congress = congress or CongressAdapter()
        self.config = config or settings.scoring
        self.clock = clock
        self.sleep = sleep

    async def run(self) -> StatusCheckResult:
        run_log = RunLog(logger)
        result = StatusCheckResult()
        budget = WallClockBudget(self.config.status_budget_seconds, clock=self.clock)

        try:
            await self._run(result, run_log, budget)
        except Exception as e:
            logger.exception("Bill status check failed")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(budget.elapsed, 2)
        result.log = run_log.lines
        return result

    async def _run(self, result: StatusCheckResult, run_log: RunLog, budget: WallClockBudget) -> None:
        cfg = self.config

        async with self.database.session() as session:
            bills = BillRepository(session)
            starred = StarredBillRepository(session)

            tracked = [
                TrackedBill(
                    id=model.id,
                    bill_id=model.bill_id,
                    action_text=model.action_text or "",
                    status=model.status,
                )
                for model in await bills.list_federal()
            ]
            if not tracked:
                run_log.info("No bills to check")
                return

            run_log.info(f"Checking {len(tracked)} federal bills")

            for index, bill in enumerate(tracked):
                if budget.exceeded():
                    result.stopped_early = True
                    run_log.warning(f"Budget exhausted after {result.checked} bills")
                    break

                if index and index % cfg.status_pause_every == 0:
                    await self.sleep(cfg.status_pause_seconds)

                result.checked += 1
                try:
                    action = await self.congress.fetch_bill_action(bill.bill_id)
                except Exception as e:
                    result.failed += 1
                    run_log.error(f"Action lookup failed for {bill.bill_id}: {e}")
                    continue
                if action is None:
                    result.unavailable += 1
                    continue

                if action.text == bill.action_text:
                    continue

                new_status = parse_status_from_action(action.text)
                old_status = bill.status or parse_status_from_action(bill.action_text).value
                significant = is_significant_change(old_status, new_status.value)

                try:
                    model = await bills.get_by_id(bill.id)
                    if model is None:
                        continue
                    await bills.record_status(model, action, new_status)
                    flagged = await starred.flag_updates(bill.id, new_status.value) if significant else 0
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    result.failed += 1
                    run_log.error(f"Failed to update {bill.bill_id}: {e}")
                    continue

                result.updated += 1
                result.starred_highlighted += flagged
                run_log.info(
                    f"{bill.bill_id}: '{old_status}' -> '{new_status.value}'"
                    f"{' (significant)' if significant else ''}"
                    f"{f', flagged {flagged} starred' if flagged else ''}"
                )

        run_log.info(
            f"Status check done: checked {result.checked}, updated {result.updated}, "
            f"starred highlighted {result.starred_highlighted}"
        )
