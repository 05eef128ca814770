"""API v1 request and response schemas."""

from api.v1.schemas.bills import (
    BillResponse,
    BillDetailResponse,
    BillListResponse
)
from api.v1.schemas.subscribers import (
    OnboardRequest,
    SubscribeRequest,
    SubscriberUpdateRequest,
    SubscriberResponse,
    InterestRequest,
    StarRequest,
)
from api.v1.schemas.matching import (
    MatchExplainRequest,
    ExploreRequest,
    ExploreStateRequest,
    ExploreStateResponse,
    MatchListResponse,
)

__all__ = [
    "BillResponse",
    "BillDetailResponse",
    "BillListResponse",
    "OnboardRequest",
    "SubscribeRequest",
    "SubscriberUpdateRequest",
    "SubscriberResponse",
    "InterestRequest",
    "StarRequest",
    "MatchExplainRequest",
    "ExploreRequest",
    "ExploreStateRequest",
    "ExploreStateResponse",
    "MatchListResponse",
]
