"""
Search interest endpoints.

Responsibility: Interest list edits and LLM keyword extraction
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ledge.db.session import get_db
from ledge.llm.client import CompletionClient
from ledge.llm.interests import extract_interests
from ledge.services.subscriber_service import (
    InvalidSubscriberInput,
    SubscriberNotFound,
    SubscriberService,
)
from api.dependencies import get_completion_client
from api.v1.schemas.subscribers import (
    InterestRequest,
    InterestResponse,
    ParseInterestsRequest,
    ParseInterestsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_DESCRIPTION_LENGTH = 5


@router.post("/interests", response_model=InterestResponse)
async def update_interests(request: InterestRequest, db: AsyncSession = Depends(get_db)):
    """
    Add, remove or bulk-replace a subscriber's search interests.

    ``add`` also saves the picked bills as matches tagged with the topic;
    ``remove`` deletes the matches tagged with it.
    """
    service = SubscriberService(db)
    try:
        if request.action == "add":
            saved = await service.add_interest(
                request.email, request.topic, request.bill_ids, request.scores
            )
            return InterestResponse(saved=saved)

        if request.action == "remove":
            deleted = await service.remove_interest(request.email, request.topic)
            return InterestResponse(deleted=deleted)

        if request.interests is None:
            raise HTTPException(status_code=400, detail="interests list required")
        interests = await service.replace_interests(request.email, request.interests)
        return InterestResponse(interests=interests)

    except SubscriberNotFound:
        raise HTTPException(status_code=404, detail="Subscriber not found")
    except InvalidSubscriberInput as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/interests/parse", response_model=ParseInterestsResponse)
async def parse_interests(
    request: ParseInterestsRequest,
    client: CompletionClient = Depends(get_completion_client)
):
    """
    Extract 3-8 monitoring keywords from a free-text description.

    Raises:
        HTTPException: 400 for a description under five characters,
            422 when no keywords could be parsed, 500 on provider errors
    """
    description = request.description.strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise HTTPException(
            status_code=400,
            detail="Please provide a description of at least 5 characters"
        )

    try:
        keywords = await extract_interests(client, description)
    except Exception as e:
        logger.error(f"Interest extraction failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to analyze description")

    if not keywords:
        raise HTTPException(status_code=422, detail="Could not parse interests from description")
    return ParseInterestsResponse(keywords=keywords)
