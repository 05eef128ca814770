"""
Cron trigger endpoints.

Each route runs one batch driver to completion and returns its result.
Authentication happens in CronSecretMiddleware before any of these run.

Responsibility: HTTP triggers for scheduled drivers
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ledge.db.session import Database
from ledge.models.results import (
    BillUpdateResult,
    IngestionResult,
    NewsletterResult,
    NightlyScoringResult,
    StatusCheckResult,
)
from ledge.orchestration import jobs
from api.dependencies import get_database

router = APIRouter()


@router.get("/cron/daily-bill", response_model=IngestionResult)
async def daily_bill(database: Database = Depends(get_database)):
    return await jobs.run_daily_bill(database)


@router.get("/cron/nightly-scoring", response_model=NightlyScoringResult)
async def nightly_scoring(database: Database = Depends(get_database)):
    return await jobs.run_nightly_scoring(database)


@router.get("/cron/bill-status", response_model=StatusCheckResult)
async def bill_status(database: Database = Depends(get_database)):
    return await jobs.run_bill_status(database)


@router.get("/cron/bill-updates", response_model=BillUpdateResult)
async def bill_updates(database: Database = Depends(get_database)):
    return await jobs.run_bill_updates(database)


@router.get("/cron/newsletter", response_model=NewsletterResult)
async def newsletter(
    test_email: Optional[str] = Query(None, alias="testEmail", description="Send only to this address"),
    database: Database = Depends(get_database)
):
    return await jobs.run_newsletter(database, test_email=test_email)


@router.get("/import-bills", response_model=IngestionResult)
async def import_bills(
    count: int = Query(20, description="Bills to import (clamped to 1-50)"),
    offset: int = Query(0, ge=0, description="Congress.gov listing offset"),
    database: Database = Depends(get_database)
):
    return await jobs.run_import_bills(database, count=count, offset=offset)
