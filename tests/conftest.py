"""Shared fixtures: in-memory database, scripted LLM, fake clock."""

import json
from typing import Callable, Dict, List, Optional, Union

import pytest
import pytest_asyncio

from ledge.config import ScoringConfig
from ledge.db.models import LegislationModel, SubscriberModel
from ledge.db.session import Database
from ledge.llm.relevance import RelevanceEngine
from ledge.utils.clock import utcnow

QUICK_MODEL = "quick-model"
FULL_MODEL = "full-model"

Reply = Union[str, Exception, Callable[[str, str], str]]


class FakeLLM:
    """
    Completion client answering from per-model scripts.

    ``quick`` and ``full`` are either a fixed reply, an exception to raise,
    or a callable receiving (system, user). Every call is recorded.
    """

    def __init__(self, quick: Reply = "0", full: Reply = "{}", on_call: Optional[Callable[[], None]] = None):
        self.replies: Dict[str, Reply] = {QUICK_MODEL: quick, FULL_MODEL: full}
        self.calls: List[dict] = []
        self.on_call = on_call

    async def complete(self, system, user, *, model, max_tokens, temperature, json_mode=False):
        self.calls.append({"system": system, "user": user, "model": model, "json_mode": json_mode})
        if self.on_call is not None:
            self.on_call()
        reply = self.replies.get(model, "")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(system, user)
        return reply

    def calls_for(self, model: str) -> List[dict]:
        return [call for call in self.calls if call["model"] == model]


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def full_reply(score: int, summary: str = "Summary.", why: str = "Why.", implications: str = "Impl.") -> str:
    return json.dumps({
        "match_score": score,
        "summary": summary,
        "why_it_matters": why,
        "implications": implications,
    })


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite://")
    await db.initialize()
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def config() -> ScoringConfig:
    """Scoring limits with production thresholds and no delays."""
    return ScoringConfig(
        batch_delay_seconds=0,
        rate_limit_backoff_seconds=0,
        nightly_bill_delay_seconds=0,
        nightly_subscriber_delay_seconds=0,
        status_pause_seconds=0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


def make_engine(llm: FakeLLM, threshold: int = 25) -> RelevanceEngine:
    return RelevanceEngine(llm, quick_model=QUICK_MODEL, full_model=FULL_MODEL, default_threshold=threshold)


async def add_bill(database: Database, bill_id: str, title: str = "A bill", **fields) -> int:
    values = {
        "tldr": f"Summary of {title}",
        "url_slug": bill_id.lower(),
        "is_published": True,
        "source": "federal",
        "created_at": utcnow(),
    }
    values.update(fields)
    async with database.session() as session:
        model = LegislationModel(bill_id=bill_id, title=title, **values)
        session.add(model)
        await session.flush()
        return model.id


async def add_subscriber(
    database: Database,
    email: str,
    goal: Optional[str] = "rural broadband",
    state_focus: Optional[str] = "all",
    interests: Optional[List[str]] = None,
) -> int:
    async with database.session() as session:
        model = SubscriberModel(
            email=email,
            org_goal=goal,
            state_focus=state_focus,
            search_interests=list(interests or []),
        )
        session.add(model)
        await session.flush()
        return model.id
