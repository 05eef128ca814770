"""
Pydantic schemas for bill API responses.

Responsibility: Bill response schemas
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class BillResponse(BaseModel):
    """Published bill as listed on the site."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    bill_id: str
    title: str
    seo_title: Optional[str] = None
    url_slug: Optional[str] = None
    tldr: Optional[str] = None
    status: Optional[str] = None
    status_date: Optional[str] = None
    source: Optional[str] = None
    state_code: Optional[str] = None
    created_at: datetime


class BillDetailResponse(BillResponse):
    """Full article with source metadata and research context."""

    meta_description: Optional[str] = None
    markdown_body: Optional[str] = None
    keywords: Optional[List[str]] = None
    schema_type: Optional[str] = None
    origin_chamber: Optional[str] = None
    type: Optional[str] = None
    congress: Optional[int] = None
    update_date: Optional[str] = None
    introduced_date: Optional[str] = None
    latest_action: Optional[Dict[str, Any]] = None
    congress_gov_url: Optional[str] = None
    sponsors: Optional[List[dict]] = None
    cosponsors: Optional[List[dict]] = None
    sponsor_data: Optional[Dict[str, Any]] = None
    news_context: Optional[List[dict]] = None
    policy_research: Optional[List[dict]] = None


class BillListResponse(BaseModel):
    """Paginated list of bills."""

    bills: List[BillResponse]
    total: int
    limit: int
    offset: int
    has_more: bool
