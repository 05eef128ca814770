import json

import httpx
import pytest

from ledge.services.email_service import DigestAlert, DigestArticle, EmailService, render_newsletter_html


def make_service(handler, api_key="re_test") -> EmailService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EmailService(api_key=api_key, from_address="The Daily Law <news@example.org>", client=client)


@pytest.mark.asyncio
async def test_send_posts_to_resend() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_1"})

    service = make_service(handler)
    result = await service.send("a@example.org", "Subject", "<p>Hi</p>")
    await service.close()

    assert result.success
    assert result.message_id == "msg_1"
    assert seen["auth"] == "Bearer re_test"
    assert seen["body"]["to"] == ["a@example.org"]
    assert seen["body"]["subject"] == "Subject"


@pytest.mark.asyncio
async def test_http_error_is_reported_not_raised() -> None:
    service = make_service(lambda request: httpx.Response(422, json={"message": "invalid"}))

    result = await service.send("a@example.org", "Subject", "<p>Hi</p>")

    assert not result.success
    assert result.error == "HTTP 422"


@pytest.mark.asyncio
async def test_missing_key_fails_without_request() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    result = await make_service(handler, api_key="").send("a@example.org", "Subject", "<p>Hi</p>")

    assert not result.success
    assert calls == []


def test_render_includes_articles_and_alerts() -> None:
    html = render_newsletter_html(
        [DigestArticle(bill_id="HR1-119", title="Broadband <Act>", url_slug="broadband-act", tldr="Funds towers.")],
        "Monday, October 19, 2026",
        alerts=[DigestAlert(bill_id="HR2-119", title="Water Act", url_slug="water-act",
                            match_score=91, why_it_matters="Touches your grants.")],
        site_url="https://thedailylaw.example/",
    )

    assert "Broadband &lt;Act&gt;" in html
    assert "https://thedailylaw.example/legislation-summary/broadband-act" in html
    assert "(91/100)" in html
    assert "Touches your grants." in html


def test_render_without_articles() -> None:
    html = render_newsletter_html([], "Monday", site_url="https://thedailylaw.example")

    assert "No new legislation was published today" in html
    assert "Matched to your goal" not in html
