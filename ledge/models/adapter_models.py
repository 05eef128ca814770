"""
Envelope returned by every source adapter.

Congress.gov, LegiScan and the research sources report per-record failures
alongside whatever they did normalize; only a missing key or an unreachable
source fails the whole call.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar, Optional, List, Dict, Any

from pydantic import BaseModel, Field

T = TypeVar('T')


class AdapterStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"
    SOURCE_UNAVAILABLE = "source_unavailable"


class AdapterError(BaseModel):
    """One failed record, or the reason the whole fetch failed."""
    error_type: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False


class AdapterResponse(BaseModel, Generic[T]):
    status: AdapterStatus
    source: str
    data: Optional[List[T]] = None
    errors: List[AdapterError] = Field(default_factory=list)
    fetched_at: datetime
    duration_seconds: float = Field(default=0.0, ge=0.0)
    rate_limit_hits: int = Field(default=0, ge=0)

    @property
    def ok(self) -> bool:
        return self.status in (AdapterStatus.SUCCESS, AdapterStatus.PARTIAL_SUCCESS)

    @property
    def records(self) -> List[T]:
        """Normalized records; empty when the call failed."""
        return list(self.data or [])
