"""
Subscriber profile service.

Onboarding, newsletter signup, profile edits, search interests and
starred bills. Every mutation that changes a subscriber's primary goal
deletes that subscriber's matches, since they were scored against the old
goal and the backfill re-scores from scratch.

Responsibility: Subscriber lifecycle rules on top of the repositories
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import SubscriberModel
from ..db.repositories import (
    BillRepository,
    MatchRepository,
    StarredBillRepository,
    SubscriberRepository,
)
from ..db.repositories.match_repository import interest_marker
from ..models.relevance import RelevanceResult
from ..utils.clock import utcnow
from ..utils.states import normalize_state_code

logger = logging.getLogger(__name__)

MIN_EMAIL_LENGTH = 5
MIN_GOAL_LENGTH = 3
DEFAULT_INTEREST_SCORE = 50

STAR_ACTIONS = ("star", "unstar", "dismiss_update")
INTEREST_ACTIONS = ("add", "remove", "update")


class SubscriberError(Exception):
    """Base error for subscriber operations"""


class InvalidSubscriberInput(SubscriberError):
    """Request data failed validation; nothing was written"""


class SubscriberNotFound(SubscriberError):
    """No subscriber with the given email"""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Subscriber not found: {email}")


class LegislationNotFound(SubscriberError):
    """No bill with the given database ID"""


@dataclass
class OnboardOutcome:
    subscriber: SubscriberModel
    created: bool
    goal_changed: bool = False


@dataclass
class ProfileUpdate:
    subscriber: SubscriberModel
    changed: bool
    goal_changed: bool = False
    deleted_matches: int = 0


def validate_email(email: Optional[str]) -> str:
    if not email or not isinstance(email, str):
        raise InvalidSubscriberInput("Invalid email address")
    cleaned = email.strip().lower()
    if "@" not in cleaned or len(cleaned) < MIN_EMAIL_LENGTH:
        raise InvalidSubscriberInput("Invalid email address")
    return cleaned


class SubscriberService:
    """
    Subscriber operations bound to one session.

    The caller owns the transaction: ``Database.session()`` commits when
    the block exits cleanly.

    Example:
        async with db.session() as session:
            service = SubscriberService(session)
            outcome = await service.onboard("a@example.org", "rural broadband", "OH")
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.subscribers = SubscriberRepository(session)
        self.matches = MatchRepository(session)
        self.starred = StarredBillRepository(session)
        self.bills = BillRepository(session)

    async def require(self, email: str) -> SubscriberModel:
        """
        Raises:
            SubscriberNotFound: If no subscriber has this email
        """
        model = await self.subscribers.get_by_email(email)
        if model is None:
            raise SubscriberNotFound(email)
        return model

    async def onboard(
        self,
        email: str,
        org_goal: str,
        state_focus: Optional[str],
        accepted_terms_at: Optional[datetime] = None,
    ) -> OnboardOutcome:
        """
        Create a subscriber or update an existing one's goal and state focus.

        Raises:
            InvalidSubscriberInput: On a bad email, a goal shorter than three
                characters or an unknown state
        """
        email = validate_email(email)
        goal = (org_goal or "").strip()
        if len(goal) < MIN_GOAL_LENGTH:
            raise InvalidSubscriberInput("Please describe your organizational goal")
        state_code = normalize_state_code(state_focus)
        if not state_code:
            raise InvalidSubscriberInput("Invalid state selection")

        existing = await self.subscribers.get_by_email(email)
        now = utcnow()

        if existing is None:
            model = await self.subscribers.create(
                email=email,
                org_goal=goal,
                state_focus=state_code,
                search_interests=[goal],
                subscription_source="onboarding",
                preferences={"frequency": "realtime"},
                accepted_terms_at=accepted_terms_at or now,
                last_seen=now,
            )
            return OnboardOutcome(subscriber=model, created=True)

        goal_changed = existing.org_goal != goal
        existing.org_goal = goal
        existing.state_focus = state_code
        existing.last_seen = now
        if accepted_terms_at:
            existing.accepted_terms_at = accepted_terms_at
        await self.session.flush()

        if goal_changed:
            await self.matches.delete_for_subscriber(existing.id)

        logger.info(f"Onboarding updated subscriber {email} (goal changed: {goal_changed})")
        return OnboardOutcome(subscriber=existing, created=False, goal_changed=goal_changed)

    async def subscribe(
        self,
        email: str,
        preferences: Optional[Dict[str, Any]] = None,
        source: str = "newsletter_page",
    ) -> OnboardOutcome:
        """Newsletter signup; signing up twice returns the existing row."""
        email = validate_email(email)
        existing = await self.subscribers.get_by_email(email)
        if existing is not None:
            return OnboardOutcome(subscriber=existing, created=False)

        model = await self.subscribers.create(
            email=email,
            preferences=dict(preferences or {}),
            subscription_source=source,
        )
        return OnboardOutcome(subscriber=model, created=True)

    async def update_profile(
        self,
        email: str,
        org_goal: Optional[str] = None,
        state_focus: Optional[str] = None,
        search_interests: Optional[List[str]] = None,
    ) -> ProfileUpdate:
        """
        Apply the provided fields; a changed goal deletes all matches first.

        An unknown state focus is ignored rather than rejected.
        """
        model = await self.require(email)
        changed = False
        goal_changed = False
        deleted = 0

        goal = (org_goal or "").strip()
        if goal and goal != model.org_goal:
            deleted = await self.matches.delete_for_subscriber(model.id)
            model.org_goal = goal
            changed = goal_changed = True

        if state_focus:
            code = normalize_state_code(state_focus)
            if code and code != model.state_focus:
                model.state_focus = code
                changed = True

        if search_interests is not None:
            cleaned = _clean_interests(search_interests)
            if cleaned != list(model.search_interests or []):
                await self.subscribers.set_interests(model, cleaned)
                changed = True

        if changed:
            await self.session.flush()
            logger.info(f"Updated subscriber {model.email} (goal changed: {goal_changed})")

        return ProfileUpdate(subscriber=model, changed=changed, goal_changed=goal_changed, deleted_matches=deleted)

    async def add_interest(
        self,
        email: str,
        topic: str,
        legislation_ids: Iterable[int] = (),
        scores: Optional[Mapping[Any, int]] = None,
    ) -> int:
        """
        Add a search interest and save the bills the subscriber picked for it.

        Saved bills are tagged with the interest marker so removing the
        interest later removes them too.

        Returns:
            Number of matches saved
        """
        topic = _require_topic(topic)
        model = await self.require(email)
        await self.subscribers.add_interest(model, topic)

        score_map = {str(key): value for key, value in (scores or {}).items()}
        known = await self.bills.get_many(legislation_ids)
        saved = 0
        for legislation_id in known:
            score = score_map.get(str(legislation_id), DEFAULT_INTEREST_SCORE)
            await self.matches.upsert(
                model.id,
                legislation_id,
                RelevanceResult.scored(score),
                summary_prefix=interest_marker(topic),
            )
            saved += 1
        return saved

    async def remove_interest(self, email: str, topic: str) -> int:
        """
        Remove a search interest and the matches added for it.

        Returns:
            Number of matches deleted
        """
        topic = _require_topic(topic)
        model = await self.require(email)
        await self.subscribers.remove_interest(model, topic)
        deleted = await self.matches.delete_for_interest(model.id, topic)
        logger.info(f"Removed interest '{topic}' for {model.email}, deleted {deleted} matches")
        return deleted

    async def replace_interests(self, email: str, interests: List[str]) -> List[str]:
        model = await self.require(email)
        await self.subscribers.set_interests(model, _clean_interests(interests))
        return list(model.search_interests or [])

    async def update_star(self, email: str, legislation_id: int, action: str = "star") -> Dict[str, bool]:
        """
        Star, unstar or acknowledge the update flag of a bill.

        Raises:
            InvalidSubscriberInput: On an unknown action
            LegislationNotFound: When starring a bill that does not exist
        """
        if action not in STAR_ACTIONS:
            raise InvalidSubscriberInput(f"Invalid action: {action}")
        model = await self.require(email)

        if action == "unstar":
            await self.starred.unstar(model.id, legislation_id)
            return {"starred": False}
        if action == "dismiss_update":
            await self.starred.dismiss_update(model.id, legislation_id)
            return {"dismissed": True}

        bill = await self.bills.get_by_id(legislation_id)
        if bill is None:
            raise LegislationNotFound(f"Bill not found: {legislation_id}")
        await self.starred.star(model.id, legislation_id, status=bill.status)
        return {"starred": True}


def _require_topic(topic: Optional[str]) -> str:
    if not topic or not isinstance(topic, str) or not topic.strip():
        raise InvalidSubscriberInput("Topic required")
    return topic.strip()


def _clean_interests(interests: Iterable[str]) -> List[str]:
    """Strip, drop blanks and case-insensitive duplicates, keep order."""
    seen = set()
    cleaned = []
    for item in interests:
        if not isinstance(item, str) or not item.strip():
            continue
        key = item.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(item.strip())
    return cleaned
