"""
Row-at-a-time match persistence for drivers.

Each upsert is committed on its own; a database error rolls back only that
row, is logged with the pair key and counted as a failure.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.repositories.match_repository import MatchRepository
from ..models.relevance import RelevanceResult
from .batching import RunLog


async def save_match(
    session: AsyncSession,
    subscriber_id: int,
    legislation_id: int,
    result: RelevanceResult,
    run_log: RunLog,
    summary_prefix: str = "",
) -> bool:
    """
    Upsert and commit one scored pair.

    Returns:
        True when the row was committed
    """
    try:
        await MatchRepository(session).upsert(
            subscriber_id, legislation_id, result, summary_prefix=summary_prefix
        )
        await session.commit()
        return True
    except SQLAlchemyError as e:
        await session.rollback()
        run_log.error(
            f"Failed to save match (subscriber={subscriber_id}, legislation={legislation_id}): {e}"
        )
        return False


def describe_failure(result: RelevanceResult) -> Optional[str]:
    """Short reason for an unavailable result, for run logs."""
    if result.is_scored:
        return None
    return f"{'rate limited: ' if result.rate_limited else ''}{result.error or 'unavailable'}"
