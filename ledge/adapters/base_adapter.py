"""
Shared plumbing for the legislative and research source adapters.

Subclasses turn one source's payloads into domain models. Requests go
through ``_request``/``_get_json`` so every call is rate limited and
retried on transient failures; ``fetch`` reports failures inside an
``AdapterResponse`` rather than raising.

Responsibility: Rate-limited HTTP access and response envelopes for adapters
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, TypeVar, Any, Dict, List, Optional
import logging

import httpx

from ..models.adapter_models import AdapterResponse, AdapterStatus, AdapterError
from ..utils.clock import utcnow
from ..utils.rate_limiter import RateLimiter
from ..utils.retry import retry_async

T = TypeVar('T')

USER_AGENT = "Ledge/1.0 (thedailylaw.org)"


class BaseAdapter(ABC, Generic[T]):
    """
    One external source.

    ``client`` may be injected; tests hand in an ``httpx.AsyncClient`` built
    on a ``MockTransport``. Adapters keep no state between ``fetch`` calls
    beyond the rate limiter.
    """

    def __init__(
        self,
        source_name: str,
        rate_limit_per_second: float = 1.0,
        max_retries: int = 3,
        timeout_seconds: int = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.source_name = source_name
        self.max_retries = max_retries
        self.rate_limiter = RateLimiter(rate=rate_limit_per_second, burst=1)
        self.logger = logging.getLogger(f"adapter.{source_name}")

        if client is None:
            client = httpx.AsyncClient(
                timeout=timeout_seconds,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                follow_redirects=True,
            )
        self.client = client

    @abstractmethod
    async def fetch(self, **kwargs: Any) -> AdapterResponse[T]:
        ...

    @abstractmethod
    def normalize(self, raw_data: Any) -> T:
        """Build one domain record; raise ValueError for unusable payloads."""
        ...

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        async def attempt() -> httpx.Response:
            await self.rate_limiter.acquire()
            self.logger.debug(f"{method} {url}")
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        return await retry_async(attempt, max_attempts=self.max_retries, logger_instance=self.logger)

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._request("GET", url, params=params)
        return response.json()

    def _error(self, error: Exception, **context: Any) -> AdapterError:
        return AdapterError(
            error_type=type(error).__name__,
            message=str(error),
            context={"adapter": self.source_name, **context},
        )

    def _envelope(
        self,
        status: AdapterStatus,
        started: datetime,
        data: Optional[List[T]],
        errors: List[AdapterError],
    ) -> AdapterResponse[T]:
        finished = utcnow()
        return AdapterResponse(
            status=status,
            source=self.source_name,
            data=data,
            errors=errors,
            fetched_at=finished,
            duration_seconds=max((finished - started).total_seconds(), 0.0),
            rate_limit_hits=self.rate_limiter.hits,
        )

    def _build_success_response(
        self,
        data: List[T],
        errors: List[AdapterError],
        start_time: datetime,
    ) -> AdapterResponse[T]:
        """Records plus per-record errors; any error makes it a partial success."""
        status = AdapterStatus.PARTIAL_SUCCESS if errors else AdapterStatus.SUCCESS
        return self._envelope(status, start_time, data, errors)

    def _build_failure_response(
        self,
        error: Exception,
        start_time: datetime,
        retryable: bool = False,
    ) -> AdapterResponse[T]:
        """The whole call failed: missing key, source down, bad payload."""
        failure = self._error(error)
        failure.retryable = retryable
        status = AdapterStatus.SOURCE_UNAVAILABLE if retryable else AdapterStatus.FAILURE
        return self._envelope(status, start_time, None, [failure])

    async def close(self) -> None:
        await self.client.aclose()
