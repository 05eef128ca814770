"""
Email delivery through the Resend HTTP API.

EmailService.send never raises: delivery failures are logged and returned
as an unsuccessful EmailSendResult so a newsletter run counts them and
moves on to the next recipient.

Responsibility: Render and send transactional and digest email
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

import httpx
from jinja2 import BaseLoader, Environment

from ..config import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailSendResult:
    email: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DigestArticle:
    bill_id: str
    title: str
    url_slug: Optional[str]
    tldr: Optional[str]


@dataclass
class DigestAlert:
    bill_id: str
    title: str
    url_slug: Optional[str]
    match_score: int
    why_it_matters: str


NEWSLETTER_TEMPLATE = """<!DOCTYPE html>
<html>
<body style="margin:0;background:#ffffff;">
<div style="font-family:serif;color:#18181b;padding:40px 20px;max-width:600px;margin:0 auto;">
  <header style="border-bottom:1px solid #e4e4e7;padding-bottom:20px;margin-bottom:40px;text-align:center;">
    <h2 style="margin:0;font-size:12px;text-transform:uppercase;letter-spacing:0.2em;color:#71717a;">The Daily Law</h2>
    <h1 style="margin:10px 0 5px 0;font-size:28px;font-weight:900;">Daily News Updated</h1>
    <p style="margin:0;font-size:14px;font-style:italic;color:#71717a;">{{ date }}</p>
  </header>
  {% if alerts %}
  <section style="margin-bottom:40px;">
    <h2 style="font-size:16px;text-transform:uppercase;letter-spacing:0.1em;">Matched to your goal</h2>
    {% for alert in alerts %}
    <div style="padding:16px;border-left:4px solid #1d4ed8;background:#eff6ff;margin-bottom:16px;">
      <strong>{{ alert.title }}</strong> <span style="color:#1d4ed8;">({{ alert.match_score }}/100)</span>
      {% if alert.why_it_matters %}<p style="margin:8px 0 0 0;font-size:14px;">{{ alert.why_it_matters }}</p>{% endif %}
      {% if alert.url_slug %}<a href="{{ site_url }}/legislation-summary/{{ alert.url_slug }}" style="font-size:13px;">Read more</a>{% endif %}
    </div>
    {% endfor %}
  </section>
  {% endif %}
  <main>
    {% for article in articles %}
    <div style="margin-bottom:40px;padding:20px;background:#fafafa;border-radius:12px;border:1px solid #f4f4f5;">
      <span style="display:inline-block;background:#eff6ff;color:#1d4ed8;font-size:10px;font-weight:bold;padding:4px 8px;border-radius:4px;margin-bottom:12px;text-transform:uppercase;">Bill {{ article.bill_id }}</span>
      <h2 style="margin:0 0 12px 0;font-size:20px;font-weight:bold;line-height:1.4;">{{ article.title }}</h2>
      <p style="margin:0 0 20px 0;font-size:15px;line-height:1.6;color:#3f3f46;">{{ article.tldr or "" }}</p>
      <a href="{{ site_url }}/legislation-summary/{{ article.url_slug }}" style="display:inline-block;background:#18181b;color:#ffffff;padding:10px 20px;border-radius:6px;text-decoration:none;font-size:13px;font-weight:bold;text-transform:uppercase;">Read Full Investigation</a>
    </div>
    {% else %}
    <p style="text-align:center;font-style:italic;color:#71717a;">No new legislation was published today. Check back tomorrow for more updates.</p>
    {% endfor %}
  </main>
  <footer style="margin-top:60px;padding-top:20px;border-top:1px solid #e4e4e7;text-align:center;font-size:12px;color:#a1a1aa;">
    You are receiving this because you subscribed at {{ site_url }}.
  </footer>
</div>
</body>
</html>
"""

_env = Environment(loader=BaseLoader(), autoescape=True)


def render_newsletter_html(
    articles: Sequence[DigestArticle],
    date: str,
    alerts: Sequence[DigestAlert] = (),
    site_url: Optional[str] = None,
) -> str:
    """Render the daily digest, with the recipient's match alerts on top."""
    template = _env.from_string(NEWSLETTER_TEMPLATE)
    return template.render(
        articles=list(articles),
        alerts=list(alerts),
        date=date,
        site_url=(site_url or settings.app.site_url).rstrip("/"),
    )


class EmailService:
    """
    Resend client.

    Example:
        service = EmailService()
        result = await service.send("a@example.org", "Hello", "<p>Hi</p>")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        cfg = settings.email
        self.api_key = api_key if api_key is not None else cfg.resend_api_key
        self.api_url = cfg.api_url
        self.from_address = from_address or cfg.from_address
        self.client = client or httpx.AsyncClient(timeout=cfg.timeout_seconds)

    async def send(self, to: str, subject: str, html: str) -> EmailSendResult:
        """
        Send one email.

        Returns:
            EmailSendResult; ``success`` is False on a missing key, an HTTP
            error or an error payload from Resend
        """
        if not self.api_key:
            logger.error("RESEND_API_KEY is not configured")
            return EmailSendResult(email=to, success=False, error="RESEND_API_KEY is not configured")

        try:
            response = await self.client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.from_address, "to": [to], "subject": subject, "html": html},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Resend rejected email to {to}: {e.response.status_code} {e.response.text[:200]}")
            return EmailSendResult(email=to, success=False, error=f"HTTP {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return EmailSendResult(email=to, success=False, error=str(e))

        logger.info(f"Sent '{subject[:60]}' to {to}")
        return EmailSendResult(email=to, success=True, message_id=payload.get("id"))

    async def close(self) -> None:
        await self.client.aclose()
