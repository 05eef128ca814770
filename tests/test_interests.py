import pytest

from ledge.llm.interests import extract_interests, parse_keywords

from conftest import FakeLLM


def test_parse_keywords_from_json_array() -> None:
    assert parse_keywords('["broadband", "rural health", "Broadband"]') == ["broadband", "rural health"]


def test_parse_keywords_falls_back_to_quoted_strings() -> None:
    raw = 'Here you go: ["water quality", "PFAS", "farm runoff"'

    assert parse_keywords(raw) == ["water quality", "PFAS", "farm runoff"]


def test_parse_keywords_caps_at_eight() -> None:
    raw = str([f"topic {i}" for i in range(12)]).replace("'", '"')

    assert len(parse_keywords(raw)) == 8


def test_parse_keywords_nothing_usable() -> None:
    assert parse_keywords("I cannot help with that.") == []
    assert parse_keywords(None) == []


@pytest.mark.asyncio
async def test_extract_interests_uses_client() -> None:
    class Client(FakeLLM):
        async def complete(self, system, user, *, model, max_tokens, temperature, json_mode=False):
            self.calls.append({"user": user, "model": model})
            return '["school meals", "child nutrition"]'

    client = Client()

    keywords = await extract_interests(client, "  We run school meal programs  ", model="m")

    assert keywords == ["school meals", "child nutrition"]
    assert client.calls[0]["user"] == "We run school meal programs"
