"""
Repository for bill match operations (the match store).

Writes are single-row upserts on the (subscriber_id, legislation_id)
composite key: re-scoring a pair updates the row in place and resets
``notified``. Reads used to filter "needs scoring" sets return whole key
sets in one query per driver run.

Responsibility: Abstract database operations for bill matches
"""

from typing import Iterable, List, Optional, Set, Tuple
from sqlalchemy import select, delete, update, desc
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..models import BillMatchModel, LegislationModel
from ..upsert import insert_for
from ...models.relevance import RelevanceResult
from ...utils.clock import utcnow

logger = logging.getLogger(__name__)


def interest_marker(topic: str) -> str:
    """Summary prefix identifying matches added for a search interest."""
    return f'Matched via interest: "{topic}". '


class MatchRepository:
    """
    Repository for bill match persistence.

    Example:
        repo = MatchRepository(session)
        done = await repo.matched_pairs(bill_ids)
        await repo.upsert(subscriber.id, bill.id, result)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(
        self,
        subscriber_id: int,
        legislation_id: int,
        result: RelevanceResult,
        summary_prefix: str = "",
    ) -> None:
        """
        Insert or overwrite the match for one pair.

        Only scored results may be persisted; an unavailable result is not a
        judgment and stays absent so the pair is retried later.

        Raises:
            ValueError: If ``result`` is not a scored outcome
        """
        if not result.is_scored:
            raise ValueError("Refusing to persist an unavailable relevance result")

        now = utcnow()
        values = {
            "match_score": result.match_score,
            "summary": f"{summary_prefix}{result.summary}",
            "why_it_matters": result.why_it_matters,
            "implications": result.implications,
            "notified": False,
            "updated_at": now,
        }

        stmt = insert_for(self.session, BillMatchModel).values(
            subscriber_id=subscriber_id,
            legislation_id=legislation_id,
            created_at=now,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["subscriber_id", "legislation_id"],
            set_=values,
        )
        await self.session.execute(stmt)

    async def get(self, subscriber_id: int, legislation_id: int) -> Optional[BillMatchModel]:
        result = await self.session.execute(
            select(BillMatchModel).where(
                BillMatchModel.subscriber_id == subscriber_id,
                BillMatchModel.legislation_id == legislation_id,
            )
        )
        return result.scalar_one_or_none()

    async def matched_pairs(self, legislation_ids: Iterable[int]) -> Set[Tuple[int, int]]:
        """(subscriber_id, legislation_id) pairs already matched among these bills."""
        ids = list(set(legislation_ids))
        if not ids:
            return set()
        result = await self.session.execute(
            select(BillMatchModel.subscriber_id, BillMatchModel.legislation_id)
            .where(BillMatchModel.legislation_id.in_(ids))
        )
        return {(row[0], row[1]) for row in result.all()}

    async def matched_legislation_ids(self, subscriber_id: int) -> Set[int]:
        """Bills already matched for one subscriber."""
        result = await self.session.execute(
            select(BillMatchModel.legislation_id)
            .where(BillMatchModel.subscriber_id == subscriber_id)
        )
        return set(result.scalars().all())

    async def list_for_subscriber(
        self,
        subscriber_id: int,
        min_score: int = 0,
        limit: int = 100,
    ) -> List[Tuple[BillMatchModel, LegislationModel]]:
        """Matches with their bills, best score first."""
        result = await self.session.execute(
            select(BillMatchModel, LegislationModel)
            .join(LegislationModel, LegislationModel.id == BillMatchModel.legislation_id)
            .where(
                BillMatchModel.subscriber_id == subscriber_id,
                BillMatchModel.match_score >= min_score,
            )
            .order_by(desc(BillMatchModel.match_score), desc(BillMatchModel.created_at))
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def list_unnotified(
        self,
        subscriber_id: int,
        min_score: int,
        limit: int = 10,
    ) -> List[Tuple[BillMatchModel, LegislationModel]]:
        """Matches not yet included in an alert email."""
        result = await self.session.execute(
            select(BillMatchModel, LegislationModel)
            .join(LegislationModel, LegislationModel.id == BillMatchModel.legislation_id)
            .where(
                BillMatchModel.subscriber_id == subscriber_id,
                BillMatchModel.notified.is_(False),
                BillMatchModel.match_score >= min_score,
            )
            .order_by(desc(BillMatchModel.match_score))
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def mark_notified(self, match_ids: Iterable[int]) -> int:
        ids = list(match_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            update(BillMatchModel)
            .where(BillMatchModel.id.in_(ids))
            .values(notified=True)
        )
        return result.rowcount or 0

    async def delete_for_subscriber(self, subscriber_id: int) -> int:
        """Drop every match of a subscriber (goal changed)."""
        result = await self.session.execute(
            delete(BillMatchModel).where(BillMatchModel.subscriber_id == subscriber_id)
        )
        deleted = result.rowcount or 0
        logger.info(f"Deleted {deleted} matches for subscriber {subscriber_id}")
        return deleted

    async def delete_for_interest(self, subscriber_id: int, topic: str) -> int:
        """Drop matches that were added for a removed search interest."""
        result = await self.session.execute(
            delete(BillMatchModel).where(
                BillMatchModel.subscriber_id == subscriber_id,
                BillMatchModel.summary.contains(f'"{topic}"', autoescape=True),
            )
        )
        return result.rowcount or 0
