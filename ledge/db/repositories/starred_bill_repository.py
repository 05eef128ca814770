"""
Repository for starred bill operations.

Responsibility: Bookmarks and their status-update flags
"""

from typing import List, Optional, Tuple
from sqlalchemy import select, delete, update, desc
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import StarredBillModel, LegislationModel
from ..upsert import insert_for


class StarredBillRepository:
    """Repository for starred bill persistence."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def star(self, subscriber_id: int, legislation_id: int, status: Optional[str] = None) -> None:
        """Bookmark a bill; starring twice is a no-op."""
        stmt = insert_for(self.session, StarredBillModel).values(
            subscriber_id=subscriber_id,
            legislation_id=legislation_id,
            has_update=False,
            last_status=status,
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["subscriber_id", "legislation_id"])
        await self.session.execute(stmt)

    async def unstar(self, subscriber_id: int, legislation_id: int) -> int:
        result = await self.session.execute(
            delete(StarredBillModel).where(
                StarredBillModel.subscriber_id == subscriber_id,
                StarredBillModel.legislation_id == legislation_id,
            )
        )
        return result.rowcount or 0

    async def dismiss_update(self, subscriber_id: int, legislation_id: int) -> int:
        result = await self.session.execute(
            update(StarredBillModel)
            .where(
                StarredBillModel.subscriber_id == subscriber_id,
                StarredBillModel.legislation_id == legislation_id,
            )
            .values(has_update=False)
        )
        return result.rowcount or 0

    async def flag_updates(self, legislation_id: int, status: str) -> int:
        """
        Flag every bookmark of a bill after a significant status change.

        Returns:
            Number of starred rows flagged
        """
        result = await self.session.execute(
            update(StarredBillModel)
            .where(StarredBillModel.legislation_id == legislation_id)
            .values(has_update=True, last_status=status)
        )
        return result.rowcount or 0

    async def get(self, subscriber_id: int, legislation_id: int) -> Optional[StarredBillModel]:
        result = await self.session.execute(
            select(StarredBillModel).where(
                StarredBillModel.subscriber_id == subscriber_id,
                StarredBillModel.legislation_id == legislation_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_subscriber(self, subscriber_id: int) -> List[Tuple[StarredBillModel, LegislationModel]]:
        """Bookmarks with their bills, updated ones first."""
        result = await self.session.execute(
            select(StarredBillModel, LegislationModel)
            .join(LegislationModel, LegislationModel.id == StarredBillModel.legislation_id)
            .where(StarredBillModel.subscriber_id == subscriber_id)
            .order_by(desc(StarredBillModel.has_update), desc(StarredBillModel.created_at))
        )
        return [(row[0], row[1]) for row in result.all()]
