"""
Congress.gov API adapter for federal bills.

Lists the most recently updated bills of the current Congress, merges each
list entry with its detail record (sponsors, cosponsors, latest action),
and fetches latest actions and full text for single bills.

Responsibility: Fetch and normalize federal bills from Congress.gov v3
"""

import re
from typing import Optional, Dict, Any, List
import httpx
from bs4 import BeautifulSoup

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.bill import Bill, LatestAction, Member, congress_gov_url, make_bill_id, parse_bill_id
from ..models.adapter_models import AdapterResponse, AdapterError
from ..utils.clock import utcnow
from ..utils.retry import RetryError

MIN_TEXT_LENGTH = 50
_WHITESPACE = re.compile(r"\s+")


def strip_markup(raw: str) -> str:
    """Plain text from an HTML/XML document, whitespace collapsed."""
    soup = BeautifulSoup(raw, "html.parser")
    for tag in soup(["style", "script"]):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ")).strip()


def pick_text_url(formats: List[Dict[str, Any]]) -> Optional[str]:
    """
    Choose the best text format of a bill text version.

    Preference: formatted HTML, then XML, then anything that is not a PDF.
    """
    for fmt in formats:
        url = fmt.get("url") or ""
        if (fmt.get("type") or "").startswith("Formatted Text") or "/htm" in url:
            return url or None
    for fmt in formats:
        url = fmt.get("url") or ""
        if fmt.get("type") == "XML" or "/xml" in url:
            return url or None
    for fmt in formats:
        if fmt.get("type") != "PDF" and fmt.get("url"):
            return fmt["url"]
    return None


class CongressAdapter(BaseAdapter[Bill]):
    """
    Adapter for the Congress.gov v3 API.

    Example:
        adapter = CongressAdapter()
        response = await adapter.fetch(limit=30, offset=0)
        for bill in response.records:
            text = await adapter.fetch_bill_text(bill.bill_id)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        congress: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        cfg = settings.congress
        super().__init__(
            source_name="congress_gov",
            rate_limit_per_second=cfg.rate_limit_per_second,
            max_retries=3,
            timeout_seconds=cfg.timeout_seconds,
            client=client,
        )
        self.api_key = api_key if api_key is not None else cfg.api_key
        self.congress = congress or cfg.congress
        self.base_url = cfg.base_url.rstrip("/")

    def _params(self, **extra: Any) -> Dict[str, Any]:
        return {"format": "json", "api_key": self.api_key, **extra}

    async def fetch(self, limit: int = 30, offset: int = 0, **kwargs: Any) -> AdapterResponse[Bill]:
        """
        Fetch recently updated bills, newest update first.

        Each list entry is followed by a detail request; a failed detail
        request is recorded as a per-record error and the bill is skipped.

        Args:
            limit: Number of bills to list
            offset: List offset (archive discovery walks backwards with it)
        """
        start_time = utcnow()
        bills: list[Bill] = []
        errors: list[AdapterError] = []

        if not self.api_key:
            self.logger.error("CONGRESS_GOV_API_KEY is missing")
            return self._build_failure_response(
                ValueError("CONGRESS_GOV_API_KEY is missing"), start_time
            )

        self.logger.info(f"Fetching bills: congress={self.congress}, limit={limit}, offset={offset}")

        try:
            data = await self._get_json(
                f"{self.base_url}/bill/{self.congress}",
                params=self._params(sort="updateDate desc", limit=limit, offset=offset),
            )
        except (httpx.HTTPError, RetryError) as e:
            self.logger.error(f"HTTP error listing bills: {e}")
            return self._build_failure_response(e, start_time, retryable=True)

        for raw_bill in data.get("bills") or []:
            try:
                detail = await self._get_json(
                    f"{self.base_url}/bill/{raw_bill['congress']}/"
                    f"{str(raw_bill['type']).lower()}/{raw_bill['number']}",
                    params=self._params(),
                )
                merged = {**raw_bill, "detail": (detail or {}).get("bill") or {}}
                bills.append(self.normalize(merged))
            except Exception as e:
                self.logger.warning(f"Failed to load bill {raw_bill.get('type')}{raw_bill.get('number')}: {e}")
                errors.append(self._error(e, number=raw_bill.get("number"), type=raw_bill.get("type")))

        self.logger.info(f"Fetched {len(bills)} bills, {len(errors)} errors")
        return self._build_success_response(bills, errors, start_time)

    def normalize(self, raw_data: Dict[str, Any]) -> Bill:
        """
        Merge a list entry with its detail record.

        ``raw_data['detail']`` holds the detail ``bill`` object; list fields
        win for identity, detail fields for content.
        """
        detail = raw_data.get("detail") or {}
        bill_type = str(raw_data["type"]).upper()
        number = str(raw_data["number"])
        congress = int(raw_data["congress"])

        latest = detail.get("latestAction") or raw_data.get("latestAction")
        cosponsors = detail.get("cosponsors")

        return Bill(
            bill_id=make_bill_id(bill_type, number, congress),
            title=detail.get("title") or raw_data.get("title") or "",
            congress=congress,
            type=bill_type,
            number=number,
            origin_chamber=raw_data.get("originChamber"),
            update_date=raw_data.get("updateDate"),
            introduced_date=detail.get("introducedDate") or raw_data.get("introducedDate"),
            url=raw_data.get("url"),
            congress_gov_url=congress_gov_url(congress, bill_type, number),
            latest_action=LatestAction.model_validate(latest) if latest else None,
            sponsors=[
                Member(
                    name=s.get("fullName") or "",
                    bioguide_id=s.get("bioguideId"),
                    state=s.get("state"),
                    party=s.get("party"),
                )
                for s in detail.get("sponsors") or []
            ],
            cosponsors=[
                Member(
                    name=s.get("fullName") or "",
                    bioguide_id=s.get("bioguideId"),
                    state=s.get("state"),
                    party=s.get("party"),
                    sponsorship_date=s.get("sponsorshipDate"),
                )
                for s in (cosponsors if isinstance(cosponsors, list) else [])
            ],
        )

    async def fetch_bill_action(self, bill_id: str) -> Optional[LatestAction]:
        """
        Current latest action of one bill.

        Returns:
            LatestAction, or None when the key is missing, the id is not a
            federal id, the request fails or the bill has no action yet
        """
        parsed = parse_bill_id(bill_id)
        if not self.api_key or parsed is None:
            return None
        bill_type, number, congress = parsed

        try:
            data = await self._get_json(
                f"{self.base_url}/bill/{congress}/{bill_type}/{number}", params=self._params()
            )
        except (httpx.HTTPError, RetryError, ValueError) as e:
            self.logger.warning(f"fetch_bill_action({bill_id}) failed: {e}")
            return None

        latest = ((data or {}).get("bill") or {}).get("latestAction")
        if not latest:
            return None
        return LatestAction(
            action_date=latest.get("actionDate") or "",
            text=latest.get("text") or "",
        )

    async def fetch_bill_text(self, bill_id: str) -> Optional[str]:
        """
        Full plain text of the newest text version.

        Returns:
            Text with markup stripped, or None when no text version exists
            yet, no usable format is published, or the text is shorter than
            50 characters
        """
        parsed = parse_bill_id(bill_id)
        if not self.api_key or parsed is None:
            return None
        bill_type, number, congress = parsed

        try:
            data = await self._get_json(
                f"{self.base_url}/bill/{congress}/{bill_type}/{number}/text", params=self._params()
            )
            versions = (data or {}).get("textVersions") or []
            if not versions:
                self.logger.info(f"fetch_bill_text({bill_id}): no text versions available")
                return None

            text_url = pick_text_url(versions[0].get("formats") or [])
            if not text_url:
                self.logger.info(f"fetch_bill_text({bill_id}): no usable text format")
                return None

            params = None if "api_key" in text_url else {"api_key": self.api_key}
            response = await self._request("GET", text_url, params=params)
        except (httpx.HTTPError, RetryError, ValueError) as e:
            self.logger.warning(f"fetch_bill_text({bill_id}) failed: {e}")
            return None

        text = strip_markup(response.text)
        if len(text) < MIN_TEXT_LENGTH:
            self.logger.info(f"fetch_bill_text({bill_id}): text too short ({len(text)} chars)")
            return None

        self.logger.info(f"fetch_bill_text({bill_id}): {len(text)} chars")
        return text
