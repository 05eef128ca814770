"""
Research context adapters used during article synthesis.

- NewsDataAdapter: recent US news coverage for a query (top 5)
- ExaResearchAdapter: non-partisan policy analysis for a bill title (top 3)
- OpenFECAdapter: campaign receipts of the primary sponsor

Each source is optional. A missing key or failed call yields an empty
response so synthesis proceeds with less context.

Responsibility: Fetch and normalize synthesis context from research APIs
"""

import re
from typing import Optional, Dict, Any
import httpx

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.adapter_models import AdapterResponse, AdapterError
from ..models.research import NewsItem, PolicyLink, SponsorFunding
from ..utils.clock import utcnow
from ..utils.retry import RetryError


class MissingAPIKeyError(Exception):
    """The research source has no API key configured"""


class NewsDataAdapter(BaseAdapter[NewsItem]):
    """
    NewsData.io latest-news search.

    Example:
        response = await NewsDataAdapter().fetch(query="HR1234 Clean Water Act")
        headlines = [item.title for item in response.records]
    """

    BASE_URL = "https://newsdata.io/api/1/news"
    MAX_RESULTS = 5

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(
            source_name="newsdata",
            rate_limit_per_second=1.0,
            max_retries=2,
            timeout_seconds=settings.research.timeout_seconds,
            client=client,
        )
        self.api_key = api_key if api_key is not None else settings.research.newsdata_api_key

    async def fetch(self, query: str = "", **kwargs: Any) -> AdapterResponse[NewsItem]:
        start_time = utcnow()
        if not self.api_key:
            return self._build_failure_response(MissingAPIKeyError("NEWSDATA_API_KEY"), start_time)

        try:
            data = await self._get_json(self.BASE_URL, params={
                "apikey": self.api_key,
                "q": query,
                "language": "en",
                "country": "us",
            })
        except (httpx.HTTPError, RetryError, ValueError) as e:
            self.logger.error(f"NewsData request failed: {e}")
            return self._build_failure_response(e, start_time, retryable=True)

        if data.get("status") != "success":
            return self._build_failure_response(
                ValueError(f"NewsData status {data.get('status')!r}"), start_time
            )

        items: list[NewsItem] = []
        errors: list[AdapterError] = []
        for raw in (data.get("results") or [])[:self.MAX_RESULTS]:
            try:
                items.append(self.normalize(raw))
            except (KeyError, ValueError) as e:
                errors.append(self._error(e))
        return self._build_success_response(items, errors, start_time)

    def normalize(self, raw_data: Dict[str, Any]) -> NewsItem:
        return NewsItem(
            title=raw_data["title"],
            link=raw_data.get("link") or "",
            source_id=raw_data.get("source_id") or "",
            pub_date=raw_data.get("pubDate") or "",
        )


BOILERPLATE_PATTERNS = [
    re.compile(r"\[Skip to main content\]", re.IGNORECASE),
    re.compile(r"#main-content", re.IGNORECASE),
    re.compile(r"Skip to content", re.IGNORECASE),
    re.compile(r"\[House Report 11\d-\d+\]", re.IGNORECASE),
]


def clean_research_title(title: Optional[str], url: str) -> str:
    """
    Readable title for a research hit.

    PDF crawls sometimes report a local temp file path as the title; the
    last URL segment is used instead in that case.
    """
    cleaned = title or "Untitled Research"
    if "\\" in cleaned or "AppData" in cleaned or "Temp" in cleaned:
        last = url.rstrip("/").split("/")[-1]
        last = re.sub(r"[-_]", " ", last)
        last = re.sub(r"\.pdf$", "", last, flags=re.IGNORECASE)
        last = re.sub(r"\.[a-z]{3,4}$", "", last, flags=re.IGNORECASE)
        cleaned = " ".join(word[:1].upper() + word[1:] for word in last.split(" "))
    return cleaned.strip()[:150]


class ExaResearchAdapter(BaseAdapter[PolicyLink]):
    """Exa neural search for policy analysis of a bill"""

    BASE_URL = "https://api.exa.ai/search"
    MAX_RESULTS = 3

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(
            source_name="exa",
            rate_limit_per_second=1.0,
            max_retries=2,
            timeout_seconds=settings.research.timeout_seconds,
            client=client,
        )
        self.api_key = api_key if api_key is not None else settings.research.exa_api_key

    async def fetch(self, bill_title: str = "", **kwargs: Any) -> AdapterResponse[PolicyLink]:
        start_time = utcnow()
        if not self.api_key:
            return self._build_failure_response(MissingAPIKeyError("EXA_API_KEY"), start_time)

        body = {
            "query": f'Non-partisan analysis, white papers, and pros/cons of US Legislation: "{bill_title}"',
            "useAutoprompt": True,
            "numResults": self.MAX_RESULTS,
            "contents": {"text": True},
        }
        try:
            response = await self._request(
                "POST", self.BASE_URL, json=body, headers={"x-api-key": self.api_key}
            )
            data = response.json()
        except (httpx.HTTPError, RetryError, ValueError) as e:
            self.logger.error(f"Exa request failed: {e}")
            return self._build_failure_response(e, start_time, retryable=True)

        links: list[PolicyLink] = []
        errors: list[AdapterError] = []
        for raw in data.get("results") or []:
            try:
                links.append(self.normalize(raw))
            except (KeyError, ValueError) as e:
                errors.append(self._error(e))
        return self._build_success_response(links, errors, start_time)

    def normalize(self, raw_data: Dict[str, Any]) -> PolicyLink:
        url = raw_data.get("url") or ""
        snippet = raw_data.get("text") or ""
        for pattern in BOILERPLATE_PATTERNS:
            snippet = pattern.sub("", snippet)
        return PolicyLink(
            title=clean_research_title(raw_data.get("title"), url),
            url=url,
            text=snippet.strip()[:300],
        )


_HONORIFIC = re.compile(r"^(rep\.|sen\.|congressman|congresswoman|hon\.)\s+", re.IGNORECASE)
_DISTRICT_SUFFIX = re.compile(r"\[.*\]$")


def fec_search_name(sponsor_name: str) -> str:
    """
    Search name for a Congress.gov sponsor name.

    Example:
        >>> fec_search_name("Rep. Smith, John [R-NY-2]")
        'John Smith'
    """
    stripped = _DISTRICT_SUFFIX.sub("", _HONORIFIC.sub("", sponsor_name)).strip()
    parts = [part.strip() for part in stripped.split(",")]
    if len(parts) > 1 and parts[1]:
        return f"{parts[1].split(' ')[0]} {parts[0]}"
    return parts[0]


class OpenFECAdapter(BaseAdapter[SponsorFunding]):
    """OpenFEC candidate lookup and principal committee totals"""

    BASE_URL = "https://api.open.fec.gov/v1"

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(
            source_name="openfec",
            rate_limit_per_second=1.0,
            max_retries=2,
            timeout_seconds=settings.research.timeout_seconds,
            client=client,
        )
        self.api_key = api_key if api_key is not None else settings.research.openfec_api_key

    async def fetch(self, sponsor_name: str = "", **kwargs: Any) -> AdapterResponse[SponsorFunding]:
        """
        Look up the sponsor as an FEC candidate and read the latest cycle
        receipts of the principal campaign committee (designation "P").

        An unknown candidate is a successful, empty response.
        """
        start_time = utcnow()
        if not self.api_key:
            return self._build_failure_response(MissingAPIKeyError("OPENFEC_API_KEY"), start_time)

        name = fec_search_name(sponsor_name)
        try:
            search = await self._get_json(
                f"{self.BASE_URL}/candidates/search/",
                params={"q": name, "api_key": self.api_key, "sort_null_only": "false"},
            )
            candidates = search.get("results") or []
            if not candidates:
                return self._build_success_response([], [], start_time)
            candidate_id = candidates[0]["candidate_id"]

            committees = await self._get_json(
                f"{self.BASE_URL}/candidate/{candidate_id}/committees/",
                params={"api_key": self.api_key},
            )
            principal = next(
                (c for c in committees.get("results") or [] if c.get("designation") == "P"),
                None,
            )

            receipts = 0.0
            if principal:
                totals = await self._get_json(
                    f"{self.BASE_URL}/committee/{principal['committee_id']}/totals/",
                    params={"api_key": self.api_key, "sort": "-cycle", "per_page": 1},
                )
                latest = (totals.get("results") or [{}])[0]
                receipts = latest.get("receipts") or 0.0
        except (httpx.HTTPError, RetryError, KeyError, ValueError) as e:
            self.logger.error(f"OpenFEC lookup for '{name}' failed: {e}")
            return self._build_failure_response(e, start_time, retryable=True)

        funding = self.normalize({
            "sponsor_name": sponsor_name,
            "candidate_id": candidate_id,
            "receipts": receipts,
        })
        return self._build_success_response([funding], [], start_time)

    def normalize(self, raw_data: Dict[str, Any]) -> SponsorFunding:
        return SponsorFunding(
            sponsor_name=raw_data["sponsor_name"],
            candidate_id=raw_data["candidate_id"],
            total_raised=float(raw_data.get("receipts") or 0.0),
        )
