"""
SQLAlchemy database models for Ledge.

ORM models for legislation, subscribers, bill matches, starred bills and
the driver run log, with the composite-key constraints that upserts rely on.

Responsibility: Define database schema and ORM mappings
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import (
    String, Integer, DateTime, Boolean, Text, JSON, Float,
    ForeignKey, Index, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..utils.clock import utcnow


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class LegislationModel(Base):
    """
    Database model for a bill and its synthesized article.

    ``bill_id`` is the external identifier (``HR1234-119`` for federal
    bills, ``STATE-CA-AB12`` for state bills) and is globally unique.
    """

    __tablename__ = "legislation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bill_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    url_slug: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)
    seo_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tldr: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    markdown_body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    keywords: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    schema_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Source metadata
    origin_chamber: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    congress: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    update_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    introduced_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    latest_action: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    congress_gov_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    sponsors: Mapped[Optional[List[dict]]] = mapped_column(JSON, nullable=True)
    cosponsors: Mapped[Optional[List[dict]]] = mapped_column(JSON, nullable=True)
    sponsor_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    news_context: Mapped[Optional[List[dict]]] = mapped_column(JSON, nullable=True)
    policy_research: Mapped[Optional[List[dict]]] = mapped_column(JSON, nullable=True)

    source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    state_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True, index=True)

    # Status tracking
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    status_changed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True
    )

    __table_args__ = (
        Index('idx_legislation_published_created', 'is_published', 'created_at'),
        Index('idx_legislation_source_state', 'source', 'state_code'),
    )

    @property
    def action_text(self) -> Optional[str]:
        """Raw text of the latest recorded action."""
        if not self.latest_action:
            return None
        return self.latest_action.get("text")

    def __repr__(self) -> str:
        return f"<LegislationModel(id={self.id}, bill_id={self.bill_id})>"


class SubscriberModel(Base):
    """
    Database model for a monitoring subscriber.

    Email is the identity key; ``org_goal`` plus ``search_interests`` form
    the combined interest string bills are scored against.
    """

    __tablename__ = "subscribers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    org_goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    state_focus: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    search_interests: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    preferences: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    subscription_source: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    accepted_terms_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow
    )

    def __repr__(self) -> str:
        return f"<SubscriberModel(id={self.id}, email={self.email})>"


class BillMatchModel(Base):
    """
    Relevance of one bill to one subscriber.

    Unique per (subscriber_id, legislation_id); re-scoring upserts in place.
    """

    __tablename__ = "bill_matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subscriber_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("subscribers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    legislation_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("legislation.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    match_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    why_it_matters: Mapped[str] = mapped_column(Text, nullable=False, default="")
    implications: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint('subscriber_id', 'legislation_id', name='uq_bill_match_pair'),
        Index('idx_bill_match_subscriber_score', 'subscriber_id', 'match_score'),
        CheckConstraint(
            'match_score >= 0 AND match_score <= 100',
            name='ck_match_score_range'
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<BillMatchModel(subscriber_id={self.subscriber_id}, "
            f"legislation_id={self.legislation_id}, "
            f"match_score={self.match_score})>"
        )


class StarredBillModel(Base):
    """A subscriber's bookmark of a bill, flagged when its status advances."""

    __tablename__ = "starred_bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subscriber_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("subscribers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    legislation_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("legislation.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    has_update: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow
    )

    __table_args__ = (
        UniqueConstraint('subscriber_id', 'legislation_id', name='uq_starred_bill_pair'),
    )

    def __repr__(self) -> str:
        return (
            f"<StarredBillModel(subscriber_id={self.subscriber_id}, "
            f"legislation_id={self.legislation_id}, "
            f"has_update={self.has_update})>"
        )


class DriverRunModel(Base):
    """
    Database model for tracking batch driver runs.

    One row per cron or scheduled invocation, for monitoring partial runs.
    """

    __tablename__ = "driver_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    driver: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    stopped_early: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duration_seconds: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    counts: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    log: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True
    )

    __table_args__ = (
        Index('idx_driver_run_driver_created', 'driver', 'created_at'),
    )

    def __repr__(self) -> str:
        return f"<DriverRunModel(id={self.id}, driver={self.driver}, success={self.success})>"
