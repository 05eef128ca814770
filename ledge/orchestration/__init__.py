"""
Batch and cron drivers for Ledge.

Each driver owns one scheduled or on-demand job, runs it under a
wall-clock budget and returns a structured result instead of raising.
"""

from .batching import RunLog, WallClockBudget, BatchOutcome, run_in_batches
from .snapshots import BillRef, SubscriberRef
from .nightly_scoring import NightlyScoringDriver
from .matching import MatchExistingDriver, explain_match
from .explore import ExploreDriver
from .status_tracker import BillStatusDriver
from .ingestion import BillIngestionPipeline, DailyBillDriver, ImportBillsDriver
from .bill_updates import BillUpdateDriver
from .newsletter import NewsletterDriver

__all__ = [
    "RunLog",
    "WallClockBudget",
    "BatchOutcome",
    "run_in_batches",
    "BillRef",
    "SubscriberRef",
    "NightlyScoringDriver",
    "MatchExistingDriver",
    "explain_match",
    "ExploreDriver",
    "BillStatusDriver",
    "BillIngestionPipeline",
    "DailyBillDriver",
    "ImportBillsDriver",
    "BillUpdateDriver",
    "NewsletterDriver",
]
