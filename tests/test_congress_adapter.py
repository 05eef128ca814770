import httpx
import pytest

from ledge.adapters.congress_adapter import CongressAdapter, pick_text_url, strip_markup

BILL_TEXT = "<html><head><style>p {}</style></head><body><pre>SECTION 1. SHORT TITLE.\n\nThis Act may be cited as the Rural Broadband Act.</pre></body></html>"


def make_adapter(routes, api_key="test-key") -> CongressAdapter:
    def handler(request: httpx.Request) -> httpx.Response:
        reply = routes.get(request.url.path)
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(reply, str):
            return httpx.Response(200, text=reply)
        return httpx.Response(200, json=reply)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CongressAdapter(api_key=api_key, congress=119, client=client)


def test_strip_markup_drops_tags_and_styles() -> None:
    assert strip_markup(BILL_TEXT) == "SECTION 1. SHORT TITLE. This Act may be cited as the Rural Broadband Act."


def test_pick_text_url_prefers_html() -> None:
    formats = [
        {"type": "PDF", "url": "https://example.org/bill.pdf"},
        {"type": "XML", "url": "https://example.org/bill.xml"},
        {"type": "Formatted Text", "url": "https://example.org/bill.htm"},
    ]

    assert pick_text_url(formats) == "https://example.org/bill.htm"
    assert pick_text_url(formats[:2]) == "https://example.org/bill.xml"
    assert pick_text_url(formats[:1]) is None


@pytest.mark.asyncio
async def test_fetch_merges_list_and_detail() -> None:
    adapter = make_adapter({
        "/v3/bill/119": {"bills": [
            {"congress": 119, "type": "HR", "number": "42", "title": "List title", "updateDate": "2026-10-01",
             "originChamber": "House"},
        ]},
        "/v3/bill/119/hr/42": {"bill": {
            "title": "Rural Broadband Act",
            "introducedDate": "2026-09-01",
            "latestAction": {"actionDate": "2026-09-02", "text": "Referred to the Committee on Energy and Commerce."},
            "sponsors": [{"fullName": "Rep. Smith, Jane [D-OH-9]", "bioguideId": "S000001", "state": "OH", "party": "D"}],
            "cosponsors": {"count": 3, "url": "https://api.congress.gov/v3/bill/119/hr/42/cosponsors"},
        }},
    })

    response = await adapter.fetch(limit=1)
    await adapter.close()

    assert len(response.records) == 1
    bill = response.records[0]
    assert bill.bill_id == "HR42-119"
    assert bill.title == "Rural Broadband Act"
    assert bill.latest_action.action_date == "2026-09-02"
    assert bill.primary_sponsor.state == "OH"
    assert bill.cosponsors == []
    assert bill.congress_gov_url == "https://www.congress.gov/bill/119th-congress/house-bill/42"


@pytest.mark.asyncio
async def test_failed_detail_skips_bill() -> None:
    adapter = make_adapter({
        "/v3/bill/119": {"bills": [{"congress": 119, "type": "S", "number": "7"}]},
    })

    response = await adapter.fetch(limit=1)

    assert response.records == []
    assert len(response.errors) == 1


@pytest.mark.asyncio
async def test_missing_key_returns_failure() -> None:
    response = await make_adapter({}, api_key="").fetch(limit=1)

    assert response.records == []
    assert not response.ok


@pytest.mark.asyncio
async def test_fetch_bill_text_follows_best_format() -> None:
    adapter = make_adapter({
        "/v3/bill/119/hr/42/text": {"textVersions": [
            {"formats": [{"type": "Formatted Text", "url": "https://www.congress.gov/119/bills/hr42/BILLS-119hr42ih.htm"}]},
        ]},
        "/119/bills/hr42/BILLS-119hr42ih.htm": BILL_TEXT,
    })

    text = await adapter.fetch_bill_text("HR42-119")

    assert text.startswith("SECTION 1. SHORT TITLE.")


@pytest.mark.asyncio
async def test_fetch_bill_text_without_versions() -> None:
    adapter = make_adapter({"/v3/bill/119/hr/42/text": {"textVersions": []}})

    assert await adapter.fetch_bill_text("HR42-119") is None
    assert await adapter.fetch_bill_text("STATE-OH-1") is None


@pytest.mark.asyncio
async def test_fetch_bill_action() -> None:
    adapter = make_adapter({
        "/v3/bill/119/s/7": {"bill": {"latestAction": {"actionDate": "2026-10-05", "text": "Passed Senate."}}},
    })

    action = await adapter.fetch_bill_action("S7-119")
    missing = await adapter.fetch_bill_action("S8-119")

    assert action.text == "Passed Senate."
    assert missing is None
