"""
Repository for legislation data operations.

Implements repository pattern for the ``legislation`` table: lookups by
external bill id and slug, the bulk "already stored" reads ingestion
diffs against, inserts of synthesized articles and state bills, and the
status / update-notice writes made after publication.

Responsibility: Abstract database operations for bills
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set
from sqlalchemy import select, func, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..models import LegislationModel
from ...models.article import SynthesizedArticle
from ...models.bill import Bill, LatestAction, StateBill, STATE_BILL_PREFIX
from ...utils.bill_status import BillStatus, parse_status_from_action
from ...utils.clock import utcnow
from ...utils.slugs import generate_slug

logger = logging.getLogger(__name__)

FEDERAL_SOURCE = "federal"
LEGISCAN_SOURCE = "legiscan"


class BillRepository:
    """
    Repository for legislation persistence.

    Example:
        repo = BillRepository(session)
        known = await repo.existing_bill_ids()
        model = await repo.get_by_bill_id("HR1234-119")
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: Active database session
        """
        self.session = session

    async def get_by_id(self, legislation_id: int) -> Optional[LegislationModel]:
        """Get bill by database ID"""
        result = await self.session.execute(
            select(LegislationModel).where(LegislationModel.id == legislation_id)
        )
        return result.scalar_one_or_none()

    async def get_by_bill_id(self, bill_id: str) -> Optional[LegislationModel]:
        """Get bill by external identifier (e.g. "HR1234-119")"""
        result = await self.session.execute(
            select(LegislationModel).where(LegislationModel.bill_id == bill_id)
        )
        return result.scalar_one_or_none()

    async def get_published_by_slug(self, slug: str) -> Optional[LegislationModel]:
        """Get a published article by its url slug."""
        result = await self.session.execute(
            select(LegislationModel)
            .where(
                LegislationModel.url_slug == slug,
                LegislationModel.is_published.is_(True),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_many(self, legislation_ids: Iterable[int]) -> Dict[int, LegislationModel]:
        """Fetch bills by database ID in one query, keyed by ID."""
        ids = list(set(legislation_ids))
        if not ids:
            return {}
        result = await self.session.execute(
            select(LegislationModel).where(LegislationModel.id.in_(ids))
        )
        return {model.id: model for model in result.scalars().all()}

    async def get_many_by_bill_id(self, bill_ids: Iterable[str]) -> Dict[str, LegislationModel]:
        """Fetch bills by external id in one query, keyed by external id."""
        ids = list(set(bill_ids))
        if not ids:
            return {}
        result = await self.session.execute(
            select(LegislationModel).where(LegislationModel.bill_id.in_(ids))
        )
        return {model.bill_id: model for model in result.scalars().all()}

    async def existing_bill_ids(self, bill_ids: Optional[Iterable[str]] = None) -> Set[str]:
        """
        External ids already stored.

        Args:
            bill_ids: Restrict the check to these ids; all ids when omitted

        Returns:
            Set of stored external ids
        """
        query = select(LegislationModel.bill_id)
        if bill_ids is not None:
            wanted = list(set(bill_ids))
            if not wanted:
                return set()
            query = query.where(LegislationModel.bill_id.in_(wanted))

        result = await self.session.execute(query)
        return set(result.scalars().all())

    async def count(self) -> int:
        """Total number of stored bills (archive discovery offset)."""
        result = await self.session.execute(select(func.count(LegislationModel.id)))
        return int(result.scalar_one())

    async def count_published(self) -> int:
        result = await self.session.execute(
            select(func.count(LegislationModel.id)).where(LegislationModel.is_published.is_(True))
        )
        return int(result.scalar_one())

    async def list_published(self, limit: int = 20, offset: int = 0) -> List[LegislationModel]:
        """Published bills, newest first."""
        result = await self.session.execute(
            select(LegislationModel)
            .where(LegislationModel.is_published.is_(True))
            .order_by(desc(LegislationModel.created_at), desc(LegislationModel.id))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_published_since(self, cutoff: datetime) -> List[LegislationModel]:
        """Published bills created at or after ``cutoff``, newest first."""
        result = await self.session.execute(
            select(LegislationModel)
            .where(
                LegislationModel.is_published.is_(True),
                LegislationModel.created_at >= cutoff,
            )
            .order_by(desc(LegislationModel.created_at), desc(LegislationModel.id))
        )
        return list(result.scalars().all())

    async def list_federal(self) -> List[LegislationModel]:
        """Federal bills tracked by the status cron, oldest first."""
        result = await self.session.execute(
            select(LegislationModel)
            .where(
                or_(
                    LegislationModel.source.is_(None),
                    LegislationModel.source == FEDERAL_SOURCE,
                ),
                LegislationModel.bill_id.not_like(f"{STATE_BILL_PREFIX}%"),
            )
            .order_by(LegislationModel.id)
        )
        return list(result.scalars().all())

    async def create_from_synthesis(
        self,
        bill: Bill,
        article: SynthesizedArticle,
        sponsor_data: Optional[Dict[str, Any]] = None,
        news_context: Optional[List[dict]] = None,
        policy_research: Optional[List[dict]] = None,
    ) -> LegislationModel:
        """
        Insert a freshly synthesized federal bill as a published article.

        Status is derived from the latest action text; the slug falls back to
        one generated from the SEO title when the model returned none usable.
        """
        action = bill.latest_action or LatestAction()
        slug = generate_slug(article.url_slug) or generate_slug(article.seo_title)

        model = LegislationModel(
            bill_id=bill.bill_id,
            title=bill.title,
            url_slug=slug,
            seo_title=article.seo_title,
            meta_description=article.meta_description,
            tldr=article.tldr,
            markdown_body=article.markdown_body,
            keywords=list(article.keywords),
            schema_type=article.schema_type,
            origin_chamber=bill.origin_chamber,
            type=bill.type,
            congress=bill.congress,
            update_date=bill.update_date,
            introduced_date=bill.introduced_date,
            latest_action=action.to_record() if bill.latest_action else None,
            congress_gov_url=bill.congress_gov_url,
            sponsors=[member.model_dump() for member in bill.sponsors],
            cosponsors=[member.model_dump() for member in bill.cosponsors],
            sponsor_data=sponsor_data,
            news_context=news_context,
            policy_research=policy_research,
            source=FEDERAL_SOURCE,
            status=parse_status_from_action(action.text).value,
            status_date=action.action_date or None,
            is_published=True,
        )
        self.session.add(model)
        await self.session.flush()

        logger.info(f"Inserted legislation {bill.bill_id} (id={model.id})")
        return model

    async def get_or_create_state_bill(self, state_bill: StateBill) -> tuple[LegislationModel, bool]:
        """
        Return the stored row for a LegiScan bill, inserting it when missing.

        Returns:
            Tuple of (model, created)
        """
        existing = await self.get_by_bill_id(state_bill.bill_id)
        if existing:
            return existing, False

        model = LegislationModel(
            bill_id=state_bill.bill_id,
            title=state_bill.title,
            tldr=state_bill.description or state_bill.title,
            url_slug=generate_slug(f"{state_bill.state} {state_bill.bill_number} {state_bill.title}"),
            congress_gov_url=state_bill.url,
            latest_action=state_bill.latest_action.to_record(),
            source=LEGISCAN_SOURCE,
            state_code=state_bill.state.upper(),
            status=parse_status_from_action(state_bill.last_action).value,
            status_date=state_bill.status_date or state_bill.last_action_date or None,
            is_published=True,
        )
        self.session.add(model)
        await self.session.flush()
        return model, True

    async def record_status(
        self,
        model: LegislationModel,
        action: LatestAction,
        status: BillStatus,
        update_date: Optional[str] = None,
    ) -> LegislationModel:
        """Write a new latest action and its parsed status onto a bill."""
        model.latest_action = action.to_record()
        model.status = status.value
        model.status_date = action.action_date or None
        model.status_changed_at = utcnow()
        model.update_date = update_date or action.action_date or model.update_date
        await self.session.flush()
        return model

    async def append_update_notice(
        self,
        model: LegislationModel,
        notice_markdown: str,
        update_date: Optional[str],
        action: Optional[LatestAction] = None,
    ) -> LegislationModel:
        """Append an update notice to the article body and refresh source dates."""
        model.markdown_body = f"{model.markdown_body or ''}{notice_markdown}"
        model.update_date = update_date
        if action is not None:
            model.latest_action = action.to_record()
        await self.session.flush()
        return model
