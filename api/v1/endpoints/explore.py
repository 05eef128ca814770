"""
Explore API endpoints.

Ad hoc topic search over recent bills and on-demand discovery of a
state's bills through LegiScan.

Responsibility: Explore endpoints
"""

from fastapi import APIRouter, Depends, HTTPException

from ledge.adapters.legiscan_adapter import LegiScanAdapter
from ledge.db.session import Database
from ledge.db.repositories import SubscriberRepository
from ledge.llm.relevance import RelevanceEngine
from ledge.models.results import ExploreResult
from ledge.orchestration.explore import MIN_QUERY_LENGTH, ExploreDriver
from ledge.utils.states import normalize_state_code, ALL_STATES
from api.dependencies import get_database, get_engine, get_legiscan
from api.v1.endpoints.matching import load_onboarded
from api.v1.schemas.matching import ExploreRequest, ExploreStateRequest, ExploreStateResponse

router = APIRouter()


@router.post("/explore", response_model=ExploreResult)
async def explore(
    request: ExploreRequest,
    database: Database = Depends(get_database),
    engine: RelevanceEngine = Depends(get_engine)
):
    """
    Quick-score recent bills against a topic; nothing is stored.

    Raises:
        HTTPException: 400 for a query under two characters, 404 for an
            unknown subscriber
    """
    query = request.query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise HTTPException(status_code=400, detail="A search query is required")

    async with database.session() as session:
        subscriber = await SubscriberRepository(session).get_by_email(request.email)
    if subscriber is None:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    return await ExploreDriver(database, engine).explore_topic(query)


@router.post("/explore/state", response_model=ExploreStateResponse, response_model_exclude_none=True)
async def explore_state(
    request: ExploreStateRequest,
    database: Database = Depends(get_database),
    engine: RelevanceEngine = Depends(get_engine),
    legiscan: LegiScanAdapter = Depends(get_legiscan)
):
    """
    Fetch a state's recent bills, store them and match them for the subscriber.

    Raises:
        HTTPException: 400 for a missing or unknown state, 404 for an
            unknown subscriber, 500 when the run failed
    """
    state = normalize_state_code(request.state)
    if not state or state == ALL_STATES:
        raise HTTPException(status_code=400, detail="Email and state required")

    subscriber = await load_onboarded(database, request.email)
    if subscriber is None:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    result = await ExploreDriver(database, engine, legiscan=legiscan).explore_state(subscriber, state)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error or "State explore failed")
    if result.fetched == 0:
        return ExploreStateResponse(message="No bills found")
    return ExploreStateResponse(added=result.added, state=result.state)
