"""
Daily newsletter.

Sends the articles published in the last day to every subscriber, with
that subscriber's unnotified high-scoring matches on top. Alerts included
in a delivered email are marked notified so they are not repeated.
"""

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..config import ScoringConfig, settings
from ..db.repositories import BillRepository, MatchRepository, SubscriberRepository
from ..db.session import Database
from ..models.results import NewsletterDelivery, NewsletterResult
from ..services.email_service import (
    DigestAlert,
    DigestArticle,
    EmailService,
    render_newsletter_html,
)
from ..utils.clock import utcnow
from .batching import Clock, RunLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    subscriber_id: Optional[int]


class NewsletterDriver:
    """
    Example:
        result = await NewsletterDriver(db, EmailService()).run()
        result = await NewsletterDriver(db, EmailService()).run(test_email="me@example.org")
    """

    def __init__(
        self,
        database: Database,
        email_service: Optional[EmailService] = None,
        config: Optional[ScoringConfig] = None,
        alert_min_score: Optional[int] = None,
        clock: Clock = time.monotonic,
    ):
        self.database = database
        self.email_service = email_service or EmailService()
        self.config = config or settings.scoring
        self.alert_min_score = (
            alert_min_score if alert_min_score is not None else settings.email.alert_min_score
        )
        self.clock = clock

    async def run(self, test_email: Optional[str] = None) -> NewsletterResult:
        """
        Args:
            test_email: Send only to this address instead of every subscriber
        """
        run_log = RunLog(logger)
        result = NewsletterResult()
        started = self.clock()

        try:
            await self._run(result, run_log, test_email)
        except Exception as e:
            logger.exception("Newsletter run failed")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(self.clock() - started, 2)
        result.log = run_log.lines
        return result

    async def _run(self, result: NewsletterResult, run_log: RunLog, test_email: Optional[str]) -> None:
        now = utcnow()
        cutoff = now - timedelta(hours=self.config.newsletter_window_hours)

        async with self.database.session() as session:
            bills = BillRepository(session)
            subscribers = SubscriberRepository(session)
            matches = MatchRepository(session)

            published = await bills.list_published_since(cutoff)
            if not published:
                run_log.info("No new articles today")
                return

            articles = [
                DigestArticle(
                    bill_id=model.bill_id,
                    title=model.seo_title or model.title,
                    url_slug=model.url_slug,
                    tldr=model.tldr,
                )
                for model in published
            ]
            result.articles = len(articles)
            subject = f"Daily News Updated: {articles[0].title}"
            date = now.strftime("%A, %B %d, %Y")

            recipients = await self._recipients(subscribers, test_email)
            run_log.info(f"Sending {len(articles)} articles to {len(recipients)} recipients")

            for recipient in recipients:
                alert_ids: List[int] = []
                alerts: List[DigestAlert] = []
                if recipient.subscriber_id is not None:
                    for match, bill in await matches.list_unnotified(
                        recipient.subscriber_id, min_score=self.alert_min_score
                    ):
                        alert_ids.append(match.id)
                        alerts.append(DigestAlert(
                            bill_id=bill.bill_id,
                            title=bill.seo_title or bill.title,
                            url_slug=bill.url_slug,
                            match_score=match.match_score,
                            why_it_matters=match.why_it_matters,
                        ))

                html = render_newsletter_html(articles, date, alerts=alerts)
                sent = await self.email_service.send(recipient.email, subject, html)
                result.details.append(NewsletterDelivery(
                    email=recipient.email,
                    success=sent.success,
                    alerts=len(alerts),
                    error=sent.error,
                ))

                if not sent.success:
                    result.failed += 1
                    run_log.error(f"Failed to send to {recipient.email}: {sent.error}")
                    continue

                result.sent += 1
                if alert_ids:
                    try:
                        await matches.mark_notified(alert_ids)
                        await session.commit()
                    except SQLAlchemyError as e:
                        await session.rollback()
                        run_log.error(f"Failed to mark alerts notified for {recipient.email}: {e}")

        run_log.info(f"Newsletter done: sent {result.sent}, failed {result.failed}")

    async def _recipients(
        self,
        subscribers: SubscriberRepository,
        test_email: Optional[str],
    ) -> List[Recipient]:
        if test_email:
            model = await subscribers.get_by_email(test_email)
            return [Recipient(email=test_email, subscriber_id=model.id if model else None)]
        return [Recipient(email=model.email, subscriber_id=model.id) for model in await subscribers.list_all()]
