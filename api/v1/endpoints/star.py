"""
Starred bill endpoints.

Responsibility: Bookmarks and status-update acknowledgements
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledge.db.session import get_db
from ledge.db.repositories import StarredBillRepository
from ledge.services.subscriber_service import (
    InvalidSubscriberInput,
    LegislationNotFound,
    SubscriberNotFound,
    SubscriberService,
)
from api.v1.schemas.subscribers import StarRequest, StarredBillResponse

router = APIRouter()


@router.post("/star")
async def star_bill(request: StarRequest, db: AsyncSession = Depends(get_db)):
    """Star, unstar or dismiss the update flag of a bill."""
    try:
        return await SubscriberService(db).update_star(
            request.email, request.legislation_id, request.action
        )
    except SubscriberNotFound:
        raise HTTPException(status_code=404, detail="Subscriber not found")
    except LegislationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidSubscriberInput as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/starred", response_model=List[StarredBillResponse])
async def list_starred(
    email: str = Query(..., description="Subscriber email"),
    db: AsyncSession = Depends(get_db)
):
    """Starred bills, those with unacknowledged status updates first."""
    try:
        subscriber = await SubscriberService(db).require(email)
    except SubscriberNotFound:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    rows = await StarredBillRepository(db).list_for_subscriber(subscriber.id)
    return [
        StarredBillResponse(
            legislation_id=bill.id,
            bill_id=bill.bill_id,
            title=bill.seo_title or bill.title,
            url_slug=bill.url_slug,
            status=bill.status,
            has_update=star.has_update,
            last_status=star.last_status,
            starred_at=star.created_at,
        )
        for star, bill in rows
    ]
