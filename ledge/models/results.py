"""
Driver result models.

Every batch driver returns one of these instead of raising: a success
flag, its counters, whether the wall-clock budget cut the run short, and
the human-readable log collected along the way.

Responsibility: Structured responses for batch and cron drivers
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class DriverResult(BaseModel):
    """Fields shared by all driver results."""

    success: bool = True
    error: Optional[str] = None
    stopped_early: bool = Field(
        default=False,
        description="Wall-clock budget was exhausted before all work started"
    )
    duration_seconds: float = 0.0
    log: List[str] = Field(default_factory=list)

    def counts(self) -> dict:
        """Numeric and list counters, used for the driver run log."""
        shared = set(DriverResult.model_fields)
        counts = {}
        for name, value in self.model_dump().items():
            if name in shared:
                continue
            counts[name] = len(value) if isinstance(value, list) else value
        return counts


class NightlyScoringResult(DriverResult):
    subscribers: int = 0
    bills: int = 0
    scored: int = 0
    new_matches: int = Field(default=0, description="Scored pairs with a score above zero")
    failed: int = 0


class MatchExistingResult(DriverResult):
    total: int = Field(default=0, description="Unmatched bills considered")
    scored: int = 0
    matched: int = Field(default=0, description="Scored bills with a score above zero")
    failed: int = 0
    message: str = ""


class ExploreHit(BaseModel):
    legislation_id: int
    bill_id: str
    title: str
    url_slug: Optional[str] = None
    tldr: Optional[str] = None
    status: Optional[str] = None
    explore_score: int


class ExploreResult(DriverResult):
    query: str
    total_scored: int = 0
    failed: int = 0
    results: List[ExploreHit] = Field(default_factory=list)


class StateExploreResult(DriverResult):
    state: str
    fetched: int = 0
    inserted: int = 0
    added: int = Field(default=0, description="Matches persisted at or above the state threshold")
    failed: int = 0


class StatusCheckResult(DriverResult):
    checked: int = 0
    updated: int = 0
    starred_highlighted: int = 0
    unavailable: int = 0
    failed: int = 0


class IngestionResult(DriverResult):
    mode: str = Field(default="priority", description="'priority', 'archive' or 'import'")
    processed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    total_matches: int = 0


class BillUpdateResult(DriverResult):
    checked: int = 0
    updated: List[str] = Field(default_factory=list)


class NewsletterDelivery(BaseModel):
    email: str
    success: bool
    alerts: int = 0
    error: Optional[str] = None


class NewsletterResult(DriverResult):
    articles: int = 0
    sent: int = 0
    failed: int = 0
    details: List[NewsletterDelivery] = Field(default_factory=list)
