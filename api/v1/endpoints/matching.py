"""
Matching API endpoints.

On-demand backfill for one subscriber, the full explanation of one
match and the subscriber dashboard listing.

Responsibility: Subscriber match endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledge.db.session import Database, get_db
from ledge.db.repositories import BillRepository, MatchRepository, SubscriberRepository
from ledge.llm.relevance import RelevanceEngine
from ledge.models.results import MatchExistingResult
from ledge.orchestration.matching import MatchExistingDriver, explain_match
from ledge.orchestration.snapshots import BillRef, SubscriberRef
from api.dependencies import get_database, get_engine
from api.v1.schemas.matching import (
    EmailRequest,
    MatchExplainRequest,
    MatchExplainResponse,
    MatchListResponse,
    MatchResponse,
)

router = APIRouter()


async def load_onboarded(database: Database, email: str) -> Optional[SubscriberRef]:
    """Subscriber snapshot, or None when unknown or without a goal."""
    async with database.session() as session:
        model = await SubscriberRepository(session).get_by_email(email)
        if model is None or not (model.org_goal or "").strip():
            return None
        return SubscriberRef.from_model(model)


@router.post("/match-existing", response_model=MatchExistingResult)
async def match_existing(
    request: EmailRequest,
    database: Database = Depends(get_database),
    engine: RelevanceEngine = Depends(get_engine)
):
    """
    Score up to 100 recent bills the subscriber has no match for yet.

    Raises:
        HTTPException: 404 when the subscriber is unknown or has no goal
    """
    subscriber = await load_onboarded(database, request.email)
    if subscriber is None:
        raise HTTPException(status_code=404, detail="Subscriber not found or no goal set")
    return await MatchExistingDriver(database, engine).run(subscriber)


@router.post("/match-explain", response_model=MatchExplainResponse)
async def match_explain(
    request: MatchExplainRequest,
    database: Database = Depends(get_database),
    engine: RelevanceEngine = Depends(get_engine)
):
    """
    Run the full relevance check for one bill and store the explanation.

    Raises:
        HTTPException: 404 for an unknown subscriber or bill, 500 when the
            model could not produce a judgment
    """
    subscriber = await load_onboarded(database, request.email)
    if subscriber is None:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    async with database.session() as session:
        model = await BillRepository(session).get_by_id(request.bill_id)
        bill = BillRef.from_model(model) if model else None
    if bill is None:
        raise HTTPException(status_code=404, detail="Bill not found")

    outcome = await explain_match(database, engine, subscriber, bill)
    if not outcome.is_scored:
        raise HTTPException(status_code=500, detail="Failed to generate explanation")

    return MatchExplainResponse(
        match_score=outcome.match_score,
        summary=outcome.summary,
        why_it_matters=outcome.why_it_matters,
        implications=outcome.implications,
    )


@router.get("/matches", response_model=MatchListResponse)
async def list_matches(
    email: str = Query(..., description="Subscriber email"),
    min_score: int = Query(1, ge=0, le=100, description="Minimum match score"),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    """Dashboard: the subscriber's matches with bill info, best first."""
    subscriber = await SubscriberRepository(db).get_by_email(email)
    if subscriber is None:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    rows = await MatchRepository(db).list_for_subscriber(subscriber.id, min_score=min_score, limit=limit)
    matches = [
        MatchResponse(
            legislation_id=bill.id,
            bill_id=bill.bill_id,
            title=bill.seo_title or bill.title,
            url_slug=bill.url_slug,
            tldr=bill.tldr,
            status=bill.status,
            state_code=bill.state_code,
            match_score=match.match_score,
            summary=match.summary,
            why_it_matters=match.why_it_matters,
            implications=match.implications,
            notified=match.notified,
            created_at=match.created_at,
        )
        for match, bill in rows
    ]
    return MatchListResponse(matches=matches, total=len(matches))
