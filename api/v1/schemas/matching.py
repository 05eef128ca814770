"""
Pydantic schemas for matching and explore endpoints.

Driver results are returned as-is (they are Pydantic models already);
these cover the requests and the dashboard listing.

Responsibility: Match, explain and explore schemas
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class EmailRequest(BaseModel):
    email: str


class MatchExplainRequest(BaseModel):
    email: str
    bill_id: int = Field(..., description="Legislation database id")


class MatchExplainResponse(BaseModel):
    match_score: int
    summary: str
    why_it_matters: str
    implications: str


class ExploreRequest(BaseModel):
    email: str
    query: str = Field(default="")


class ExploreStateRequest(BaseModel):
    email: str
    state: str


class MatchResponse(BaseModel):
    """One dashboard row: a match and the bill it refers to."""
    legislation_id: int
    bill_id: str
    title: str
    url_slug: Optional[str] = None
    tldr: Optional[str] = None
    status: Optional[str] = None
    state_code: Optional[str] = None
    match_score: int
    summary: str
    why_it_matters: str
    implications: str
    notified: bool
    created_at: datetime


class MatchListResponse(BaseModel):
    matches: List[MatchResponse]
    total: int


class ExploreStateResponse(BaseModel):
    """Outcome of a state discovery run; ``state`` is omitted when nothing was found."""
    success: bool = True
    added: int = 0
    state: Optional[str] = None
    message: Optional[str] = None
