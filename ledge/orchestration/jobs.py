"""
Scheduled job entrypoints.

Builds each driver with its default adapters, runs it, closes the HTTP
clients it opened and records the outcome in the driver run log. The cron
routes, the CLI and the Prefect flows all go through these functions.

Responsibility: Wire drivers to adapters and record their runs
"""

from typing import Optional
import logging

from ..adapters.congress_adapter import CongressAdapter
from ..db.repositories import DriverRunRepository
from ..db.session import Database
from ..llm.client import get_llm_client
from ..llm.relevance import get_relevance_engine
from ..llm.synthesis import SynthesisService
from ..models.results import (
    BillUpdateResult,
    DriverResult,
    IngestionResult,
    NewsletterResult,
    NightlyScoringResult,
    StatusCheckResult,
)
from ..services.email_service import EmailService
from .bill_updates import BillUpdateDriver
from .ingestion import BillIngestionPipeline, DailyBillDriver, ImportBillsDriver
from .newsletter import NewsletterDriver
from .nightly_scoring import NightlyScoringDriver
from .status_tracker import BillStatusDriver

logger = logging.getLogger(__name__)

DAILY_BILL = "daily-bill"
NIGHTLY_SCORING = "nightly-scoring"
BILL_STATUS = "bill-status"
BILL_UPDATES = "bill-updates"
NEWSLETTER = "newsletter"
IMPORT_BILLS = "import-bills"


async def record_run(database: Database, driver: str, result: DriverResult) -> None:
    """Store a driver outcome; a failed write is logged, never raised."""
    try:
        await DriverRunRepository(database).record(driver, result)
    except Exception as e:
        logger.error(f"Failed to record {driver} run: {e}")


def build_pipeline() -> BillIngestionPipeline:
    return BillIngestionPipeline(CongressAdapter(), SynthesisService(get_llm_client()))


async def run_daily_bill(database: Database) -> IngestionResult:
    pipeline = build_pipeline()
    try:
        result = await DailyBillDriver(database, pipeline).run()
    finally:
        await pipeline.close()
    await record_run(database, DAILY_BILL, result)
    return result


async def run_import_bills(database: Database, count: int = 20, offset: int = 0) -> IngestionResult:
    pipeline = build_pipeline()
    try:
        result = await ImportBillsDriver(database, pipeline, get_relevance_engine()).run(count=count, offset=offset)
    finally:
        await pipeline.close()
    await record_run(database, IMPORT_BILLS, result)
    return result


async def run_nightly_scoring(database: Database) -> NightlyScoringResult:
    result = await NightlyScoringDriver(database, get_relevance_engine()).run()
    await record_run(database, NIGHTLY_SCORING, result)
    return result


async def run_bill_status(database: Database) -> StatusCheckResult:
    congress = CongressAdapter()
    try:
        result = await BillStatusDriver(database, congress).run()
    finally:
        await congress.close()
    await record_run(database, BILL_STATUS, result)
    return result


async def run_bill_updates(database: Database) -> BillUpdateResult:
    congress = CongressAdapter()
    try:
        result = await BillUpdateDriver(database, congress).run()
    finally:
        await congress.close()
    await record_run(database, BILL_UPDATES, result)
    return result


async def run_newsletter(database: Database, test_email: Optional[str] = None) -> NewsletterResult:
    email_service = EmailService()
    try:
        result = await NewsletterDriver(database, email_service).run(test_email=test_email)
    finally:
        await email_service.close()
    await record_run(database, NEWSLETTER, result)
    return result
