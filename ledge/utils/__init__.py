"""Utility modules for Ledge"""

from .rate_limiter import RateLimiter
from .retry import retry_async, RetryError
from .bill_status import BillStatus, parse_status_from_action, is_significant_change

__all__ = [
    "RateLimiter",
    "retry_async",
    "RetryError",
    "BillStatus",
    "parse_status_from_action",
    "is_significant_change",
]
