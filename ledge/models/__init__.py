"""
Models package for Ledge.

Pydantic models for:
- Adapter responses and metadata
- Bills as fetched from legislative sources
- Relevance judgments and synthesized articles
- Driver results
"""

from .adapter_models import (
    AdapterStatus,
    AdapterError,
    AdapterResponse,
)
from .bill import Bill, StateBill, LatestAction, Member
from .relevance import RelevanceResult, ScoreStatus
from .article import SynthesizedArticle
from .research import NewsItem, PolicyLink, SponsorFunding

__all__ = [
    "AdapterStatus",
    "AdapterError",
    "AdapterResponse",
    "Bill",
    "StateBill",
    "LatestAction",
    "Member",
    "RelevanceResult",
    "ScoreStatus",
    "SynthesizedArticle",
    "NewsItem",
    "PolicyLink",
    "SponsorFunding",
]
