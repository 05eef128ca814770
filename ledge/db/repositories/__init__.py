"""
Repository package for data access operations.

Implements repository pattern for abstracting database operations.
"""

from .bill_repository import BillRepository
from .subscriber_repository import SubscriberRepository
from .match_repository import MatchRepository
from .starred_bill_repository import StarredBillRepository
from .driver_run_repository import DriverRunRepository

__all__ = [
    "BillRepository",
    "SubscriberRepository",
    "MatchRepository",
    "StarredBillRepository",
    "DriverRunRepository",
]
