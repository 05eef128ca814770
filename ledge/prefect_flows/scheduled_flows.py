"""
Prefect flows for the Ledge batch drivers.

Each driver runs inside a task with retries; each flow initializes the
database, runs its task and logs the driver's counters. ``serve_all``
registers every flow with its cron schedule (times in UTC).

Responsibility: Schedule the batch drivers
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from prefect import flow, task, get_run_logger, serve

from ledge.db.session import Database
from ledge.models.results import DriverResult
from ledge.orchestration import jobs

DriverJob = Callable[[Database], Awaitable[DriverResult]]

SCHEDULES = {
    jobs.DAILY_BILL: "0 13 * * *",
    jobs.NIGHTLY_SCORING: "0 2 * * *",
    jobs.BILL_STATUS: "0 */6 * * *",
    jobs.BILL_UPDATES: "0 12 * * *",
    jobs.NEWSLETTER: "0 14 * * *",
}


async def _run_with_database(name: str, job: DriverJob) -> Dict[str, Any]:
    logger = get_run_logger()
    logger.info(f"Starting {name}")

    db = Database()
    await db.initialize()
    try:
        result = await job(db)
    finally:
        await db.close()

    if not result.success:
        # Raising lets Prefect retry the task
        raise RuntimeError(f"{name} failed: {result.error}")

    logger.info(
        f"{name} complete in {result.duration_seconds}s "
        f"(stopped early: {result.stopped_early}): {result.counts()}"
    )
    return result.model_dump(exclude={"log"})


@task(
    name="daily_bill",
    description="Ingest new Congress.gov bills as published articles",
    retries=1,
    retry_delay_seconds=120,
)
async def daily_bill_task() -> Dict[str, Any]:
    return await _run_with_database(jobs.DAILY_BILL, jobs.run_daily_bill)


@task(
    name="nightly_scoring",
    description="Score recent bills against every subscriber",
    retries=1,
    retry_delay_seconds=300,
)
async def nightly_scoring_task() -> Dict[str, Any]:
    return await _run_with_database(jobs.NIGHTLY_SCORING, jobs.run_nightly_scoring)


@task(
    name="bill_status",
    description="Refresh federal bill statuses and flag starred bills",
    retries=2,
    retry_delay_seconds=60,
)
async def bill_status_task() -> Dict[str, Any]:
    return await _run_with_database(jobs.BILL_STATUS, jobs.run_bill_status)


@task(
    name="bill_updates",
    description="Append update notices to articles whose bills changed",
    retries=2,
    retry_delay_seconds=60,
)
async def bill_updates_task() -> Dict[str, Any]:
    return await _run_with_database(jobs.BILL_UPDATES, jobs.run_bill_updates)


@task(
    name="newsletter",
    description="Send the daily digest email",
    retries=0,
)
async def newsletter_task(test_email: Optional[str] = None) -> Dict[str, Any]:
    async def job(db: Database) -> DriverResult:
        return await jobs.run_newsletter(db, test_email=test_email)

    return await _run_with_database(jobs.NEWSLETTER, job)


@task(
    name="import_bills",
    description="Bulk import bills by count and offset",
    retries=0,
)
async def import_bills_task(count: int = 20, offset: int = 0) -> Dict[str, Any]:
    async def job(db: Database) -> DriverResult:
        return await jobs.run_import_bills(db, count=count, offset=offset)

    return await _run_with_database(jobs.IMPORT_BILLS, job)


@flow(name="daily-bill", description="Daily bill ingestion", log_prints=True)
async def daily_bill_flow() -> Dict[str, Any]:
    return await daily_bill_task()


@flow(name="nightly-scoring", description="Nightly incremental relevance scoring", log_prints=True)
async def nightly_scoring_flow() -> Dict[str, Any]:
    return await nightly_scoring_task()


@flow(name="bill-status", description="Bill status tracking", log_prints=True)
async def bill_status_flow() -> Dict[str, Any]:
    return await bill_status_task()


@flow(name="bill-updates", description="Bill update notices", log_prints=True)
async def bill_updates_flow() -> Dict[str, Any]:
    return await bill_updates_task()


@flow(name="newsletter", description="Daily newsletter", log_prints=True)
async def newsletter_flow(test_email: Optional[str] = None) -> Dict[str, Any]:
    return await newsletter_task(test_email=test_email)


@flow(name="import-bills", description="Bulk bill import", log_prints=True)
async def import_bills_flow(count: int = 20, offset: int = 0) -> Dict[str, Any]:
    return await import_bills_task(count=count, offset=offset)


SCHEDULED_FLOWS = {
    jobs.DAILY_BILL: daily_bill_flow,
    jobs.NIGHTLY_SCORING: nightly_scoring_flow,
    jobs.BILL_STATUS: bill_status_flow,
    jobs.BILL_UPDATES: bill_updates_flow,
    jobs.NEWSLETTER: newsletter_flow,
}


def serve_all() -> None:
    """Serve every scheduled flow from this process (blocks)."""
    deployments = [
        scheduled.to_deployment(name=f"ledge-{name}", cron=SCHEDULES[name])
        for name, scheduled in SCHEDULED_FLOWS.items()
    ]
    serve(*deployments)


if __name__ == "__main__":
    serve_all()
