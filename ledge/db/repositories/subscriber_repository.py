"""
Repository for subscriber data operations.

Responsibility: Abstract database operations for subscribers
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..models import SubscriberModel

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class SubscriberRepository:
    """
    Repository for subscriber persistence.

    Emails are stored lower-cased; every lookup normalizes its input.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, subscriber_id: int) -> Optional[SubscriberModel]:
        result = await self.session.execute(
            select(SubscriberModel).where(SubscriberModel.id == subscriber_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[SubscriberModel]:
        result = await self.session.execute(
            select(SubscriberModel).where(SubscriberModel.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> List[SubscriberModel]:
        result = await self.session.execute(select(SubscriberModel).order_by(SubscriberModel.id))
        return list(result.scalars().all())

    async def list_with_goal(self) -> List[SubscriberModel]:
        """Subscribers that completed onboarding (non-null goal)."""
        result = await self.session.execute(
            select(SubscriberModel)
            .where(SubscriberModel.org_goal.is_not(None))
            .order_by(SubscriberModel.id)
        )
        return [sub for sub in result.scalars().all() if sub.org_goal.strip()]

    async def create(
        self,
        email: str,
        org_goal: Optional[str] = None,
        state_focus: Optional[str] = None,
        search_interests: Optional[List[str]] = None,
        subscription_source: Optional[str] = None,
        **fields,
    ) -> SubscriberModel:
        model = SubscriberModel(
            email=normalize_email(email),
            org_goal=org_goal,
            state_focus=state_focus,
            search_interests=list(search_interests or []),
            subscription_source=subscription_source,
            **fields,
        )
        self.session.add(model)
        await self.session.flush()
        logger.info(f"Created subscriber {model.email} (id={model.id})")
        return model

    async def set_interests(self, model: SubscriberModel, interests: List[str]) -> SubscriberModel:
        """Replace the interest list (a new list, so the JSON column is marked dirty)."""
        model.search_interests = list(interests)
        await self.session.flush()
        return model

    async def add_interest(self, model: SubscriberModel, topic: str) -> bool:
        """
        Append ``topic`` unless already present (compared case-insensitively).

        Returns:
            True when the list changed
        """
        current = list(model.search_interests or [])
        if any(item.lower() == topic.lower() for item in current):
            return False
        await self.set_interests(model, current + [topic])
        return True

    async def remove_interest(self, model: SubscriberModel, topic: str) -> bool:
        current = list(model.search_interests or [])
        if topic not in current:
            return False
        await self.set_interests(model, [item for item in current if item != topic])
        return True
