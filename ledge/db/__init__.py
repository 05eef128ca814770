"""
Database package for Ledge.

Provides ORM models, session management, and repository pattern
for data persistence.
"""

from .models import (
    Base,
    LegislationModel,
    SubscriberModel,
    BillMatchModel,
    StarredBillModel,
    DriverRunModel,
)
from .session import Database, db, get_db, get_database

__all__ = [
    "Base",
    "LegislationModel",
    "SubscriberModel",
    "BillMatchModel",
    "StarredBillModel",
    "DriverRunModel",
    "Database",
    "db",
    "get_db",
    "get_database",
]
