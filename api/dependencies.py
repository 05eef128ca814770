"""
FastAPI dependencies.

Route handlers receive the database manager, the relevance engine and the
external clients through these so tests can swap them with
``app.dependency_overrides``.

Responsibility: Dependency providers for API routes
"""

from typing import AsyncGenerator

from ledge.adapters.legiscan_adapter import LegiScanAdapter
from ledge.db.session import Database, db
from ledge.llm.client import CompletionClient, get_llm_client
from ledge.llm.relevance import RelevanceEngine, get_relevance_engine


async def get_database() -> Database:
    """Process-wide database manager, initialized on first use."""
    if not db.is_initialized:
        await db.initialize()
    return db


def get_engine() -> RelevanceEngine:
    return get_relevance_engine()


def get_completion_client() -> CompletionClient:
    return get_llm_client()


async def get_legiscan() -> AsyncGenerator[LegiScanAdapter, None]:
    adapter = LegiScanAdapter()
    try:
        yield adapter
    finally:
        await adapter.close()
