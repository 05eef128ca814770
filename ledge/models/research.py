"""
Research context models.

Auxiliary context handed to article synthesis: recent news coverage,
policy research and the primary sponsor's campaign funding.
"""

from typing import List
from pydantic import BaseModel, Field


class NewsItem(BaseModel):
    """News article mentioning a bill (NewsData.io)"""
    title: str
    link: str = ""
    source_id: str = ""
    pub_date: str = ""


class PolicyLink(BaseModel):
    """Policy research result (Exa)"""
    title: str
    url: str = ""
    text: str = Field(default="", description="Snippet, at most 300 characters")


class IndustryTotal(BaseModel):
    name: str
    amount: float = 0.0


class SponsorFunding(BaseModel):
    """Campaign receipts of a bill's primary sponsor (OpenFEC)"""
    sponsor_name: str
    candidate_id: str
    total_raised: float = 0.0
    top_industries: List[IndustryTotal] = Field(default_factory=list)
