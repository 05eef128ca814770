import json

import pytest

from ledge.llm.synthesis import SynthesisService, repair_json
from ledge.models.bill import Bill

from conftest import FakeLLM

BODY = "## What it does\n" + "The bill funds rural broadband. " * 10


def article_json(**overrides) -> str:
    payload = {
        "seo_title": "Broadband Act Explained",
        "url_slug": "broadband-act-explained",
        "meta_description": "Summary.",
        "tldr": "Funds towers.",
        "markdown_body": BODY,
        "keywords": ["broadband"],
        "schema_type": "Legislation",
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_valid_json_is_parsed() -> None:
    assert repair_json('{"a": 1}') == {"a": 1}


def test_truncated_tail_is_closed() -> None:
    assert repair_json('{"tldr": "cut off') == {"tldr": "cut off"}


def test_fields_are_extracted_from_broken_json() -> None:
    content = '{"seo_title": "Title", "keywords": ["a", "b"], "markdown_body": "Body text here", oops'

    parsed = repair_json(content)

    assert parsed["seo_title"] == "Title"
    assert parsed["keywords"] == ["a", "b"]
    assert parsed["markdown_body"] == "Body text here"


def test_unrecoverable_content() -> None:
    assert repair_json("") is None
    assert repair_json("no json at all") is None


def make_service(reply) -> SynthesisService:
    return SynthesisService(FakeLLM(full=reply), model="full-model")


def broadband_bill() -> Bill:
    return Bill(bill_id="HR9-119", title="Broadband Act", congress=119, type="HR", number="9")


@pytest.mark.asyncio
async def test_synthesize_returns_validated_article() -> None:
    article = await make_service(article_json(keywords="broadband, rural")).synthesize(broadband_bill(), "text")

    assert article.url_slug == "broadband-act-explained"
    assert article.keywords == ["broadband", "rural"]


@pytest.mark.asyncio
async def test_short_body_is_rejected() -> None:
    article = await make_service(article_json(markdown_body="too short")).synthesize(broadband_bill(), "text")

    assert article is None


@pytest.mark.asyncio
async def test_provider_error_returns_none() -> None:
    article = await make_service(RuntimeError("timeout")).synthesize(broadband_bill(), "text")

    assert article is None


@pytest.mark.asyncio
async def test_text_is_truncated_in_prompt() -> None:
    llm = FakeLLM(full=article_json())
    service = SynthesisService(llm, model="full-model")

    await service.synthesize(broadband_bill(), "x" * 5000)

    assert "x" * 2000 in llm.calls[0]["user"]
    assert "x" * 2001 not in llm.calls[0]["user"]
