"""
Interest parsing.

Extracts 3-8 short policy keywords from a free-text description of what
an organization does, for use as search interests.
"""

import json
import re
from typing import List, Optional
import logging

from ..config import settings
from .client import CompletionClient
from .prompts import INTERESTS_SYSTEM

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 8
_QUOTED = re.compile(r'"([^"]+)"')


def parse_keywords(raw: Optional[str]) -> List[str]:
    """
    Read keywords from a completion that should be a JSON array.

    Falls back to collecting quoted strings when the array is malformed.
    """
    if not raw:
        return []

    text = raw.strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        keywords = [item.strip() for item in parsed if isinstance(item, str) and item.strip()]
    else:
        keywords = [match.strip() for match in _QUOTED.findall(text) if match.strip()]

    unique: List[str] = []
    for keyword in keywords:
        if keyword.lower() not in {k.lower() for k in unique}:
            unique.append(keyword)
    return unique[:MAX_KEYWORDS]


async def extract_interests(
    client: CompletionClient,
    description: str,
    model: Optional[str] = None,
) -> List[str]:
    """
    Ask the model for monitoring keywords.

    Raises:
        Exception: Provider errors propagate; the HTTP layer maps them to 500
    """
    raw = await client.complete(
        INTERESTS_SYSTEM,
        description.strip(),
        model=model or settings.llm.interests_model,
        max_tokens=300,
        temperature=0.3,
    )
    keywords = parse_keywords(raw)
    logger.info(f"Parsed {len(keywords)} interests from description")
    return keywords
