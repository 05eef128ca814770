"""
Repository for driver run log operations.

Records one row per batch driver invocation, used to monitor partial
runs and failures of the scheduled jobs.
"""

from typing import List, Optional

from sqlalchemy import select, desc

from ..models import DriverRunModel
from ..session import Database
from ...models.results import DriverResult

# Stored logs are truncated to keep rows small
MAX_LOG_LINES = 200


class DriverRunRepository:
    """Repository for driver run logs."""

    def __init__(self, db: Database):
        """
        Initialize repository with database instance.

        Args:
            db: Database instance
        """
        self.db = db

    async def record(self, driver: str, result: DriverResult) -> DriverRunModel:
        """
        Persist the outcome of one driver run.

        Args:
            driver: Driver name (e.g. "nightly-scoring")
            result: Result returned by the driver

        Returns:
            Created DriverRunModel instance
        """
        async with self.db.session() as session:
            run = DriverRunModel(
                driver=driver,
                success=result.success,
                stopped_early=result.stopped_early,
                duration_seconds=result.duration_seconds,
                counts=result.counts(),
                error=result.error,
                log=result.log[-MAX_LOG_LINES:],
            )
            session.add(run)
            await session.commit()
            await session.refresh(run)
            return run

    async def latest(self, driver: Optional[str] = None, limit: int = 20) -> List[DriverRunModel]:
        """Most recent runs, optionally for one driver."""
        async with self.db.session() as session:
            query = select(DriverRunModel).order_by(desc(DriverRunModel.created_at), desc(DriverRunModel.id))
            if driver:
                query = query.where(DriverRunModel.driver == driver)
            result = await session.execute(query.limit(limit))
            return list(result.scalars().all())
