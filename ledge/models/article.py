"""
Synthesized article model.

Structured output the synthesis stage asks the LLM for. Validation mirrors
what the publishing site needs: every field present and a body long
enough to be a real article rather than a truncated completion.

Responsibility: Validate LLM-produced article payloads
"""

from typing import List
from pydantic import BaseModel, Field, field_validator

MIN_BODY_LENGTH = 200


class SynthesizedArticle(BaseModel):
    """SEO article generated for one bill."""

    seo_title: str = Field(min_length=1)
    url_slug: str = Field(min_length=1)
    meta_description: str = Field(min_length=1)
    tldr: str = Field(min_length=1, description="2-3 sentence impact statement")
    markdown_body: str = Field(min_length=MIN_BODY_LENGTH)
    keywords: List[str] = Field(min_length=1)
    schema_type: str = Field(default="Legislation", min_length=1)

    @field_validator("keywords", mode="before")
    @classmethod
    def split_keywords(cls, v):
        """Accept a comma-separated string where a list was expected."""
        if isinstance(v, str):
            return [part.strip().strip('"') for part in v.strip("[]").split(",") if part.strip()]
        return v
