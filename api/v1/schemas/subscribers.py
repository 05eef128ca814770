"""
Pydantic schemas for subscriber requests and responses.

Responsibility: Subscriber, interest and starred bill schemas
"""

from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class OnboardRequest(BaseModel):
    """Create or update a subscriber profile"""
    email: str = Field(..., description="Subscriber email (identity key)")
    org_goal: str = Field(..., description="Organizational goal bills are scored against")
    state_focus: Optional[str] = Field(None, description="Two-letter state code, state name or 'all'")
    accepted_terms_at: Optional[datetime] = None


class SubscribeRequest(BaseModel):
    """Newsletter signup"""
    email: str
    preferences: Dict[str, Any] = Field(default_factory=dict)
    source: str = Field(default="newsletter_page")


class SubscriberUpdateRequest(BaseModel):
    """Partial profile update; a changed goal deletes existing matches"""
    email: str
    org_goal: Optional[str] = None
    state_focus: Optional[str] = None
    search_interests: Optional[List[str]] = None


class SubscriberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    org_goal: Optional[str] = None
    state_focus: Optional[str] = None
    search_interests: Optional[List[str]] = None
    subscription_source: Optional[str] = None
    created_at: datetime


class OnboardResponse(BaseModel):
    success: bool = True
    message: str
    subscriber: SubscriberResponse


class SubscriberUpdateResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    goal_changed: bool = False
    deleted_matches: int = 0


class InterestRequest(BaseModel):
    """Add, remove or replace search interests"""
    email: str
    action: Literal["add", "remove", "update"]
    topic: Optional[str] = None
    bill_ids: List[int] = Field(default_factory=list, description="Legislation ids to save under the topic")
    scores: Dict[str, int] = Field(default_factory=dict, description="Explore score per legislation id")
    interests: Optional[List[str]] = None


class InterestResponse(BaseModel):
    success: bool = True
    saved: int = 0
    deleted: int = 0
    interests: Optional[List[str]] = None


class ParseInterestsRequest(BaseModel):
    description: str = Field(default="")


class ParseInterestsResponse(BaseModel):
    keywords: List[str]


class StarRequest(BaseModel):
    email: str
    legislation_id: int
    action: Literal["star", "unstar", "dismiss_update"] = "star"


class StarredBillResponse(BaseModel):
    legislation_id: int
    bill_id: str
    title: str
    url_slug: Optional[str] = None
    status: Optional[str] = None
    has_update: bool
    last_status: Optional[str] = None
    starred_at: datetime
