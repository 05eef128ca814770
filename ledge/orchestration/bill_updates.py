"""
Bill update checker.

Compares the stored ``update_date`` of each known bill with a fresh
Congress.gov listing and, for bills that changed, appends an update notice
to the published article and refreshes the source dates.
"""

import time
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..adapters.congress_adapter import CongressAdapter
from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository
from ..db.session import Database
from ..models.bill import Bill, LatestAction
from ..models.results import BillUpdateResult
from ..utils.clock import utcnow
from .batching import Clock, RunLog

logger = logging.getLogger(__name__)


def render_update_notice(previous_update: Optional[str], bill: Bill, checked_at: datetime) -> str:
    """Markdown block appended to an article whose bill changed."""
    action_text = bill.latest_action.text if bill.latest_action and bill.latest_action.text else "No new action"
    return (
        "\n\n---\n"
        "## UPDATE NOTICE\n\n"
        f"**Last Updated:** {checked_at.strftime('%Y-%m-%d')}\n\n"
        "This bill has been updated since our original analysis.\n\n"
        f"**Previous Update Date:** {previous_update or 'unknown'}\n"
        f"**Latest Update Date:** {bill.update_date}\n\n"
        f"**Latest Action:** {action_text}\n\n"
        "*Our analysis reflects the most current information available as of the date above.*"
    )


class BillUpdateDriver:
    """
    Example:
        result = await BillUpdateDriver(db, CongressAdapter()).run()
    """

    def __init__(
        self,
        database: Database,
        congress: Optional[CongressAdapter] = None,
        config: Optional[ScoringConfig] = None,
        clock: Clock = time.monotonic,
    ):
        self.database = database
        self.congress = congress or CongressAdapter()
        self.config = config or settings.scoring
        self.clock = clock

    async def run(self) -> BillUpdateResult:
        run_log = RunLog(logger)
        result = BillUpdateResult()
        started = self.clock()

        try:
            await self._run(result, run_log)
        except Exception as e:
            logger.exception("Bill update check failed")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(self.clock() - started, 2)
        result.log = run_log.lines
        return result

    async def _run(self, result: BillUpdateResult, run_log: RunLog) -> None:
        response = await self.congress.fetch(limit=self.config.update_check_limit, offset=0)
        fresh = {bill.bill_id: bill for bill in response.records}
        if not fresh:
            run_log.warning("No bills returned from Congress.gov")
            return

        async with self.database.session() as session:
            bills = BillRepository(session)
            stored = await bills.get_many_by_bill_id(fresh)
            result.checked = len(stored)
            run_log.info(f"Checking {len(stored)} stored bills against {len(fresh)} fresh records")

            changed = [
                (model.id, bill_id, model.update_date)
                for bill_id, model in stored.items()
                if fresh[bill_id].update_date and fresh[bill_id].update_date != model.update_date
            ]

            now = utcnow()
            for legislation_id, bill_id, previous_update in changed:
                bill = fresh[bill_id]
                model = await bills.get_by_id(legislation_id)
                if model is None:
                    continue

                notice = render_update_notice(previous_update, bill, now)
                action = None
                if bill.latest_action is not None:
                    action = LatestAction(action_date=bill.update_date, text=bill.latest_action.text)

                try:
                    await bills.append_update_notice(model, notice, bill.update_date, action=action)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    run_log.error(f"Failed to update {bill_id}: {e}")
                    continue

                result.updated.append(bill_id)
                run_log.info(f"Update notice added to {bill_id}")

        run_log.info(f"Bill update check completed: {len(result.updated)} updated")
