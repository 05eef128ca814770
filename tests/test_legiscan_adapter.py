import base64

import httpx
import pytest

from ledge.adapters.legiscan_adapter import LegiScanAdapter


def make_adapter(responses, api_key="ls-key", seen=None) -> LegiScanAdapter:
    def handler(request: httpx.Request) -> httpx.Response:
        op = request.url.params.get("op")
        if seen is not None:
            seen.append((op, request.url.params.get("id")))
        return httpx.Response(200, json=responses(op, request.url.params))

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LegiScanAdapter(api_key=api_key, client=client)


def master_list(op, params):
    if op == "getMasterList":
        return {"status": "OK", "masterlist": {
            "session": {"session_id": 2100},
            "0": {"bill_id": 11, "number": "HB 1", "title": "Old", "last_action": "Introduced", "last_action_date": "2026-01-05"},
            "1": {"bill_id": 12, "number": "HB 2", "title": "New", "last_action": "Passed House", "last_action_date": "2026-03-01"},
        }}
    bill_id = int(params.get("id"))
    return {"status": "OK", "bill": {
        "bill_id": bill_id,
        "bill_number": f"HB {bill_id - 10}",
        "title": f"Title {bill_id}",
        "description": f"Description {bill_id}",
        "url": f"https://legiscan.com/OH/bill/{bill_id}",
        "texts": [{"doc_id": 500 + bill_id, "state_link": "https://example.org/text"}],
    }}


@pytest.mark.asyncio
async def test_state_bills_sorted_by_last_action() -> None:
    seen = []
    adapter = make_adapter(master_list, seen=seen)

    bills = await adapter.fetch_state_bills("oh", limit=1)
    await adapter.close()

    assert [bill.bill_id for bill in bills] == ["STATE-OH-12"]
    assert bills[0].last_action == "Passed House"
    assert bills[0].session_id == 2100
    assert bills[0].doc_id == 512
    assert seen == [("getMasterList", None), ("getBill", "12")]


@pytest.mark.asyncio
async def test_missing_key_returns_nothing() -> None:
    seen = []
    adapter = make_adapter(master_list, api_key="", seen=seen)

    assert await adapter.fetch_state_bills("OH") == []
    assert seen == []


@pytest.mark.asyncio
async def test_error_status_returns_nothing() -> None:
    adapter = make_adapter(lambda op, params: {"status": "ERROR", "alert": {"message": "Unknown state"}})

    assert await adapter.fetch_state_bills("ZZ") == []


@pytest.mark.asyncio
async def test_bill_text_is_decoded() -> None:
    html = "<html><body><p>Section 1.</p><p>Ohio broadband.</p></body></html>"

    def responses(op, params):
        return {"status": "OK", "text": {"doc": base64.b64encode(html.encode()).decode(), "mime": "text/html"}}

    text = await make_adapter(responses).fetch_bill_text(512)

    assert text == "Section 1. Ohio broadband."
