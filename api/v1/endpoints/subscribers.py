"""
Subscriber API endpoints.

Onboarding, newsletter signup and profile edits. Email is the identity
key; there are no sessions or passwords.

Responsibility: Subscriber profile endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledge.db.session import get_db
from ledge.services.subscriber_service import (
    InvalidSubscriberInput,
    SubscriberNotFound,
    SubscriberService,
)
from api.v1.schemas.subscribers import (
    OnboardRequest,
    OnboardResponse,
    SubscribeRequest,
    SubscriberResponse,
    SubscriberUpdateRequest,
    SubscriberUpdateResponse,
)

router = APIRouter()


@router.post("/onboard", response_model=OnboardResponse)
async def onboard(request: OnboardRequest, db: AsyncSession = Depends(get_db)):
    """
    Create a subscriber or update an existing one's goal and state focus.

    Raises:
        HTTPException: 400 on an invalid email, goal or state
    """
    try:
        outcome = await SubscriberService(db).onboard(
            request.email,
            request.org_goal,
            request.state_focus,
            accepted_terms_at=request.accepted_terms_at,
        )
    except InvalidSubscriberInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    return OnboardResponse(
        message="Profile created" if outcome.created else "Profile updated",
        subscriber=SubscriberResponse.model_validate(outcome.subscriber),
    )


@router.post("/subscribe")
async def subscribe(request: SubscribeRequest, db: AsyncSession = Depends(get_db)):
    """Newsletter signup by email."""
    try:
        outcome = await SubscriberService(db).subscribe(
            request.email, preferences=request.preferences, source=request.source
        )
    except InvalidSubscriberInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": "Successfully subscribed" if outcome.created else "Email already subscribed",
        "created": outcome.created,
    }


@router.get("/subscriber", response_model=SubscriberResponse)
async def get_subscriber(
    email: str = Query(..., description="Subscriber email"),
    db: AsyncSession = Depends(get_db)
):
    try:
        model = await SubscriberService(db).require(email)
    except SubscriberNotFound:
        raise HTTPException(status_code=404, detail="Subscriber not found")
    return SubscriberResponse.model_validate(model)


@router.patch("/subscriber", response_model=SubscriberUpdateResponse)
async def update_subscriber(request: SubscriberUpdateRequest, db: AsyncSession = Depends(get_db)):
    """
    Update goal, state focus or interests.

    A changed goal deletes every existing match for the subscriber; the
    dashboard re-runs the backfill afterwards.
    """
    try:
        update = await SubscriberService(db).update_profile(
            request.email,
            org_goal=request.org_goal,
            state_focus=request.state_focus,
            search_interests=request.search_interests,
        )
    except SubscriberNotFound:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    if not update.changed:
        return SubscriberUpdateResponse(message="No changes detected")

    return SubscriberUpdateResponse(
        goal_changed=update.goal_changed,
        deleted_matches=update.deleted_matches,
    )
