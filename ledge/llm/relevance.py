"""
Relevance scoring engine.

Two-phase judgment of how much a bill matters to a subscriber's goal:

1. Quick score: a small model answers with a bare integer 0-100.
2. Threshold gate: below the threshold the quick score stands, with empty
   explanation fields, and no second call is made.
3. Full check: a larger model returns score, summary, why it matters and
   implications as JSON; its score is authoritative.

The engine never raises. Provider failures come back as an
``unavailable`` RelevanceResult (score 0, error text, rate-limit flag) so
callers can tell "irrelevant" from "could not be scored".

Responsibility: Score one (bill, goal) pair with bounded LLM cost
"""

import json
import re
from typing import Iterable, Optional
import logging

from pydantic import ValidationError

from ..config import settings
from ..models.relevance import FullCheckPayload, RelevanceResult, clamp_score
from ..utils.retry import RetryError
from .client import CompletionClient, get_llm_client
from .prompts import (
    FULL_CHECK_SYSTEM,
    FULL_CHECK_USER,
    QUICK_SCORE_SYSTEM,
    QUICK_SCORE_USER,
)

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")

RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "ratelimit", "429", "too many requests")

GOAL_SEPARATOR = "; "


def parse_quick_score(raw: Optional[str]) -> int:
    """
    Parse a quick-score completion.

    Strips every non-digit character and clamps to [0, 100]; empty or
    digit-free output is 0. Runs of more than three significant digits are
    100 without being converted.

    Example:
        >>> parse_quick_score(" 72.")
        72
        >>> parse_quick_score("none")
        0
    """
    if not raw:
        return 0
    digits = _NON_DIGITS.sub("", raw).lstrip("0")
    if not digits:
        return 0
    if len(digits) > 3:
        return 100
    return clamp_score(int(digits))


def is_rate_limit_error(error: BaseException) -> bool:
    """Detect provider rate limiting from the error message (and its cause)."""
    messages = [str(error)]
    if isinstance(error, RetryError) and error.last_exception is not None:
        messages.append(str(error.last_exception))
    text = " ".join(messages).lower()
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


def combine_goal(org_goal: Optional[str], interests: Optional[Iterable[str]] = None) -> str:
    """
    Build the combined interest string scored against.

    The primary goal comes first; interests repeating it (case-insensitively)
    or each other are dropped.

    Example:
        >>> combine_goal("Clean water", ["clean water", "PFAS"])
        'Clean water; PFAS'
    """
    parts = []
    seen = set()
    for item in [org_goal or "", *(interests or [])]:
        cleaned = (item or "").strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        parts.append(cleaned)
    return GOAL_SEPARATOR.join(parts)


class RelevanceEngine:
    """
    Stateless two-phase scorer over an injected completion client.

    Example:
        engine = RelevanceEngine(get_llm_client())
        result = await engine.score_bill_for_goal(title, tldr, goal)
        if result.is_scored:
            await matches.upsert(subscriber.id, bill.id, result)
    """

    def __init__(
        self,
        client: CompletionClient,
        quick_model: Optional[str] = None,
        full_model: Optional[str] = None,
        default_threshold: Optional[int] = None,
    ):
        self.client = client
        self.quick_model = quick_model or settings.llm.quick_model
        self.full_model = full_model or settings.llm.full_model
        self.default_threshold = (
            settings.scoring.default_threshold if default_threshold is None else default_threshold
        )

    def _failure(self, stage: str, title: str, error: Exception) -> RelevanceResult:
        rate_limited = is_rate_limit_error(error)
        logger.error(
            f"{stage} failed for '{title[:80]}'"
            f"{' (rate limited)' if rate_limited else ''}: {error}"
        )
        return RelevanceResult.unavailable(error=f"{stage}: {error}", rate_limited=rate_limited)

    async def quick_score(self, title: str, summary: str, goal: str) -> RelevanceResult:
        """
        Cheap gating score.

        Returns:
            Scored result carrying only ``match_score``, or an unavailable result
        """
        try:
            raw = await self.client.complete(
                QUICK_SCORE_SYSTEM.format(goal=goal),
                QUICK_SCORE_USER.format(title=title, summary=summary),
                model=self.quick_model,
                max_tokens=5,
                temperature=0.1,
            )
            return RelevanceResult.scored(parse_quick_score(raw))
        except Exception as e:
            return self._failure("quick score", title, e)

    async def full_check(self, title: str, summary: str, goal: str) -> RelevanceResult:
        """
        Full structured judgment.

        Returns:
            Scored result with explanation fields, or an unavailable result when
            the call fails or the reply is not a JSON object
        """
        try:
            content = await self.client.complete(
                FULL_CHECK_SYSTEM,
                FULL_CHECK_USER.format(title=title, summary=summary, goal=goal),
                model=self.full_model,
                max_tokens=500,
                temperature=0.3,
                json_mode=True,
            )
            if not content:
                raise ValueError("empty completion")
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError("completion is not a JSON object")
            payload = FullCheckPayload.model_validate(data)
            return RelevanceResult.scored(
                clamp_score(payload.match_score),
                summary=payload.summary,
                why_it_matters=payload.why_it_matters,
                implications=payload.implications,
            )
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            logger.warning(f"full check returned unusable output for '{title[:80]}': {e}")
            return RelevanceResult.unavailable(error=f"full check: {e}")
        except Exception as e:
            return self._failure("full check", title, e)

    async def score_bill_for_goal(
        self,
        title: str,
        summary: str,
        goal: str,
        threshold: Optional[int] = None,
    ) -> RelevanceResult:
        """
        Quick score, gate, then full check.

        Args:
            title: Bill title
            summary: Short bill summary (tldr); the title is used when empty
            goal: Combined interest string
            threshold: Gate for the full check (default 25)

        Returns:
            The full result when the gate passes and the full check succeeds;
            otherwise the quick score with empty explanation fields. An
            unavailable result only when the quick score itself failed.
        """
        gate = self.default_threshold if threshold is None else threshold
        summary = summary or title

        quick = await self.quick_score(title, summary, goal)
        if not quick.is_scored:
            return quick

        if quick.match_score < gate:
            return quick

        full = await self.full_check(title, summary, goal)
        if not full.is_scored:
            logger.info(
                f"full check unavailable for '{title[:80]}', keeping quick score {quick.match_score}"
            )
            return quick.model_copy(update={"rate_limited": full.rate_limited})

        return full


def get_relevance_engine() -> RelevanceEngine:
    """Engine bound to the process-wide LLM client."""
    return RelevanceEngine(get_llm_client())
