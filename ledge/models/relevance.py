"""
Relevance judgment models.

A judgment is a tagged outcome: ``scored`` carries a real score (0 is a
valid "irrelevant" verdict), ``unavailable`` means the LLM could not be
reached or answered unusably and the pair should be retried later.

Responsibility: Result types produced by the relevance scoring engine
"""

import math
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


def clamp_score(value: float) -> int:
    """Round and clamp a score into [0, 100]; NaN and infinities are 0."""
    if not math.isfinite(value):
        return 0
    return max(0, min(100, int(round(value))))


class ScoreStatus(str, Enum):
    SCORED = "scored"
    UNAVAILABLE = "unavailable"


class RelevanceResult(BaseModel):
    """Relevance of one bill to one interest string."""

    status: ScoreStatus = Field(default=ScoreStatus.SCORED)
    match_score: int = Field(default=0, ge=0, le=100)
    summary: str = Field(default="", description="Two-sentence summary for the subscriber")
    why_it_matters: str = Field(default="")
    implications: str = Field(default="")
    error: Optional[str] = Field(default=None, description="Failure reason when unavailable")
    rate_limited: bool = Field(
        default=False,
        description="Failure was a provider rate limit; callers should back off"
    )

    @property
    def is_scored(self) -> bool:
        return self.status == ScoreStatus.SCORED

    @classmethod
    def scored(cls, match_score: int, summary: str = "", why_it_matters: str = "",
               implications: str = "") -> "RelevanceResult":
        return cls(
            status=ScoreStatus.SCORED,
            match_score=clamp_score(match_score),
            summary=summary,
            why_it_matters=why_it_matters,
            implications=implications,
        )

    @classmethod
    def unavailable(cls, error: str, rate_limited: bool = False) -> "RelevanceResult":
        return cls(status=ScoreStatus.UNAVAILABLE, match_score=0, error=error, rate_limited=rate_limited)


class FullCheckPayload(BaseModel):
    """JSON object the full relevance check asks the model to return."""

    match_score: float = 0
    summary: str = ""
    why_it_matters: str = ""
    implications: str = ""

    @field_validator("match_score", mode="before")
    @classmethod
    def coerce_score(cls, v):
        if v is None or v == "":
            return 0
        if isinstance(v, str):
            digits = "".join(ch for ch in v if ch.isdigit() or ch == ".")
            return float(digits) if digits.replace(".", "", 1).isdigit() else 0
        return v

    @field_validator("match_score")
    @classmethod
    def finite_score(cls, v: float) -> float:
        return v if math.isfinite(v) else 0

    @field_validator("summary", "why_it_matters", "implications", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return "" if v is None else str(v)
