"""
LegiScan API adapter for state legislation.

Uses the master list of a state's current session plus per-bill detail
lookups. Without a LEGISCAN_API_KEY every call returns an empty result and
logs a warning, so the rest of the pipeline runs federal-only.

Responsibility: Fetch and normalize state bills from LegiScan
"""

import base64
import binascii
from typing import Optional, Dict, Any, List
import httpx

from .base_adapter import BaseAdapter
from .congress_adapter import strip_markup
from ..config import settings
from ..models.bill import StateBill
from ..models.adapter_models import AdapterResponse, AdapterError
from ..utils.clock import utcnow
from ..utils.retry import RetryError


class LegiScanError(Exception):
    """LegiScan answered with a non-OK status"""


class LegiScanAdapter(BaseAdapter[StateBill]):
    """
    Adapter for the LegiScan pull API.

    Example:
        adapter = LegiScanAdapter()
        bills = await adapter.fetch_state_bills("CA", limit=25)
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        cfg = settings.legiscan
        super().__init__(
            source_name="legiscan",
            rate_limit_per_second=cfg.rate_limit_per_second,
            max_retries=3,
            timeout_seconds=cfg.timeout_seconds,
            client=client,
        )
        self.api_key = api_key if api_key is not None else cfg.api_key
        self.base_url = cfg.base_url

    def _has_key(self) -> bool:
        if not self.api_key:
            self.logger.warning("No LEGISCAN_API_KEY configured, state bill fetch disabled")
            return False
        return True

    async def _call(self, op: str, **params: Any) -> Dict[str, Any]:
        data = await self._get_json(self.base_url, params={"key": self.api_key, "op": op, **params})
        if not isinstance(data, dict) or data.get("status") != "OK":
            raise LegiScanError(f"{op} returned status {data.get('status') if isinstance(data, dict) else data!r}")
        return data

    async def fetch(self, state: str = "", limit: int = 25, **kwargs: Any) -> AdapterResponse[StateBill]:
        """
        Fetch the most recently acted-on bills of a state's current session.

        Master list entries are sorted by last action date (newest first) and
        the top ``limit`` get a getBill detail lookup each.
        """
        start_time = utcnow()
        bills: list[StateBill] = []
        errors: list[AdapterError] = []
        state = state.upper()

        if not self._has_key():
            return self._build_success_response(bills, errors, start_time)

        self.logger.info(f"Fetching master list for {state}, limit={limit}")

        try:
            listing = await self._call("getMasterList", state=state)
        except (httpx.HTTPError, RetryError, LegiScanError) as e:
            self.logger.error(f"Master list failed for {state}: {e}")
            return self._build_failure_response(e, start_time, retryable=not isinstance(e, LegiScanError))

        master = listing.get("masterlist") or {}
        session_id = (master.get("session") or {}).get("session_id") or 0
        entries = [value for key, value in master.items() if key != "session" and isinstance(value, dict)]
        entries.sort(key=lambda entry: entry.get("last_action_date") or "", reverse=True)

        for entry in entries[:limit]:
            try:
                detail = await self._call("getBill", id=entry["bill_id"])
                bills.append(self.normalize({
                    "bill": detail.get("bill") or {},
                    "entry": entry,
                    "state": state,
                    "session_id": session_id,
                }))
            except Exception as e:
                self.logger.warning(f"Failed to fetch detail for bill {entry.get('bill_id')}: {e}")
                errors.append(self._error(e, bill_id=entry.get("bill_id"), state=state))

        self.logger.info(f"Returned {len(bills)} bills for {state}")
        return self._build_success_response(bills, errors, start_time)

    def normalize(self, raw_data: Dict[str, Any]) -> StateBill:
        """Combine a getBill detail with its master list entry."""
        bill = raw_data["bill"]
        entry = raw_data.get("entry") or {}
        texts = bill.get("texts") or []

        return StateBill(
            legiscan_id=int(bill["bill_id"]),
            bill_number=bill.get("bill_number") or entry.get("number") or "",
            title=bill.get("title") or entry.get("title") or "",
            description=bill.get("description") or bill.get("title") or "",
            state=raw_data["state"],
            status_date=bill.get("status_date") or entry.get("last_action_date"),
            url=bill.get("url"),
            text_url=texts[0].get("state_link") if texts else None,
            last_action=entry.get("last_action") or "",
            last_action_date=entry.get("last_action_date") or "",
            session_id=raw_data.get("session_id") or 0,
            doc_id=texts[-1].get("doc_id") if texts else None,
        )

    async def fetch_state_bills(self, state: str, limit: int = 25) -> List[StateBill]:
        """Recent state bills; empty on a missing key or any failure."""
        response = await self.fetch(state=state, limit=limit)
        return response.records

    async def fetch_bill_text(self, doc_id: int) -> Optional[str]:
        """
        Decoded text of one bill document.

        Returns:
            Plain text (markup stripped for HTML documents), or None
        """
        if not self._has_key():
            return None

        try:
            data = await self._call("getBillText", id=doc_id)
            doc = (data.get("text") or {}).get("doc")
            if not doc:
                return None
            decoded = base64.b64decode(doc).decode("utf-8", errors="replace")
        except (httpx.HTTPError, RetryError, LegiScanError, binascii.Error, ValueError) as e:
            self.logger.warning(f"Failed to fetch text for doc_id {doc_id}: {e}")
            return None

        mime = (data.get("text") or {}).get("mime") or ""
        if "html" in mime:
            return strip_markup(decoded)
        return decoded.strip()

    async def search(self, state: str, query: str, limit: int = 10) -> List[StateBill]:
        """Keyword search within a state; search hits carry no doc_id."""
        if not self._has_key():
            return []

        state = state.upper()
        try:
            data = await self._call("getSearch", state=state, query=query)
        except (httpx.HTTPError, RetryError, LegiScanError) as e:
            self.logger.error(f"Search '{query}' in {state} failed: {e}")
            return []

        results = data.get("searchresult") or {}
        hits = [value for key, value in results.items() if key != "summary" and isinstance(value, dict)]

        bills: List[StateBill] = []
        for hit in hits[:limit]:
            try:
                bills.append(StateBill(
                    legiscan_id=int(hit["bill_id"]),
                    bill_number=hit.get("bill_number") or "",
                    title=hit.get("title") or "",
                    description=hit.get("title") or "",
                    state=state,
                    status_date=hit.get("last_action_date") or "",
                    url=hit.get("url") or "",
                    text_url=hit.get("text_url"),
                    last_action=hit.get("last_action") or "",
                    last_action_date=hit.get("last_action_date") or "",
                ))
            except (KeyError, ValueError) as e:
                self.logger.warning(f"Skipping malformed search hit: {e}")
        return bills
