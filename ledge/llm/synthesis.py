"""
Article synthesis.

Turns bill text plus research context into a structured SEO article via
the LLM. Completions are often truncated or slightly malformed JSON, so
parsing goes through ``repair_json`` before validation against
SynthesizedArticle.

Responsibility: Produce and validate synthesized articles
"""

import json
import re
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from ..config import settings
from ..models.article import SynthesizedArticle
from ..models.bill import Bill
from .client import CompletionClient
from .prompts import SYNTHESIS_SYSTEM, SYNTHESIS_USER

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = (
    "seo_title",
    "url_slug",
    "meta_description",
    "tldr",
    "markdown_body",
    "keywords",
    "schema_type",
)

# Context slices sent to the model
TEXT_CHARS = 2000
SPONSOR_CHARS = 5000
CONTEXT_CHARS = 10000


def _close_truncated(content: str) -> str:
    repaired = content.rstrip()
    if repaired.count('"') % 2 == 1:
        repaired += '"'
    missing = repaired.count("{") - repaired.count("}")
    if missing > 0:
        repaired += "}" * missing
    return repaired


def _extract_fields(content: str) -> Dict[str, Any]:
    extracted: Dict[str, Any] = {}
    for field in ARTICLE_FIELDS:
        match = re.search(
            rf'"{field}"\s*:\s*(?:"((?:[^"\\]|\\.)*)"|(\[[^\]]*\])|([^,}}\n]+))',
            content,
            re.IGNORECASE | re.DOTALL,
        )
        if not match:
            continue
        string_value, list_value, raw_value = match.groups()
        if list_value is not None:
            try:
                extracted[field] = json.loads(list_value)
            except json.JSONDecodeError:
                extracted[field] = [
                    part.strip().strip('"') for part in list_value.strip("[]").split(",") if part.strip()
                ]
        elif string_value is not None:
            try:
                extracted[field] = json.loads(f'"{string_value}"')
            except json.JSONDecodeError:
                extracted[field] = string_value.replace('\\"', '"')
        elif raw_value is not None:
            extracted[field] = raw_value.strip()
    return extracted


def repair_json(content: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse a possibly malformed JSON article.

    Tries, in order: the content as-is, the content with a truncated tail
    closed, and field-by-field extraction.

    Returns:
        Parsed dict, or None when nothing usable could be recovered
    """
    if not content:
        return None

    for candidate in (content, _close_truncated(content)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.info("Rebuilding malformed article JSON field by field")
    extracted = _extract_fields(content)
    if not extracted.get("markdown_body"):
        return None
    return extracted


def _safe_dump(value: Any, limit: int) -> str:
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = str(value)
    return text[:limit]


class SynthesisService:
    """
    Generates a published article for one bill.

    Example:
        service = SynthesisService(get_llm_client())
        article = await service.synthesize(bill, text, sponsor, news, research)
    """

    def __init__(self, client: CompletionClient, model: Optional[str] = None):
        self.client = client
        self.model = model or settings.llm.synthesis_model

    async def synthesize(
        self,
        bill: Bill,
        full_text: str,
        sponsor_info: Optional[Dict[str, Any]] = None,
        news_context: Optional[List[dict]] = None,
        policy_research: Optional[List[dict]] = None,
    ) -> Optional[SynthesizedArticle]:
        """
        Generate and validate an article.

        Returns:
            The validated article, or None on provider failure, unparseable
            output, missing fields or a body shorter than 200 characters
        """
        logger.info(f"Synthesizing article for {bill.bill_id}")

        user_prompt = SYNTHESIS_USER.format(
            title=bill.title,
            text=full_text[:TEXT_CHARS],
            sponsor=_safe_dump(sponsor_info or {}, SPONSOR_CHARS),
            news=_safe_dump(news_context or [], CONTEXT_CHARS),
            research=_safe_dump(policy_research or [], CONTEXT_CHARS),
        )

        try:
            content = await self.client.complete(
                SYNTHESIS_SYSTEM.format(bill_id=bill.bill_id),
                user_prompt,
                model=self.model,
                max_tokens=4000,
                temperature=0.7,
                json_mode=True,
            )
        except Exception as e:
            logger.error(f"Synthesis call failed for {bill.bill_id}: {e}")
            return None

        parsed = repair_json(content)
        if parsed is None:
            logger.error(f"Synthesis output for {bill.bill_id} is not recoverable JSON")
            return None

        try:
            article = SynthesizedArticle.model_validate(parsed)
        except ValidationError as e:
            missing = [field for field in ARTICLE_FIELDS if not parsed.get(field)]
            logger.error(
                f"Synthesis validation failed for {bill.bill_id} "
                f"(missing={missing}): {e.error_count()} errors"
            )
            return None

        logger.info(f"Synthesized {bill.bill_id}: {len(article.markdown_body)} chars")
        return article
