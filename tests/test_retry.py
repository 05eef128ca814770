from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from ledge.llm.client import LLMClient
from ledge.utils.retry import RetryError, backoff_delay, is_transient, retry_async

from conftest import SleepRecorder


def http_error(status: int, retry_after: str = "") -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.congress.gov/v3/bill/119")
    headers = {"retry-after": retry_after} if retry_after else {}
    response = httpx.Response(status, request=request, headers=headers)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class Flaky:
    def __init__(self, *failures: Exception):
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


def test_backoff_doubles_until_cap() -> None:
    assert [backoff_delay(n, jitter=False) for n in range(3)] == [1.0, 2.0, 4.0]
    assert backoff_delay(10, max_delay=60.0, jitter=False) == 60.0


def test_transient_classification() -> None:
    assert is_transient(http_error(429))
    assert is_transient(http_error(503))
    assert is_transient(httpx.ConnectTimeout("slow"))
    assert not is_transient(http_error(404))
    assert not is_transient(ValueError("bad payload"))


@pytest.mark.asyncio
async def test_retries_transient_errors_honouring_retry_after() -> None:
    func = Flaky(http_error(429, retry_after="7"), http_error(503, retry_after="3"))
    sleep = SleepRecorder()

    assert await retry_async(func, max_attempts=3, sleep=sleep) == "ok"
    assert func.calls == 3
    assert sleep.calls == [7.0, 3.0]


@pytest.mark.asyncio
async def test_non_transient_error_is_raised_immediately() -> None:
    func = Flaky(http_error(404))
    sleep = SleepRecorder()

    with pytest.raises(httpx.HTTPStatusError):
        await retry_async(func, max_attempts=3, sleep=sleep)
    assert func.calls == 1
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts() -> None:
    func = Flaky(*(http_error(502, retry_after="120") for _ in range(3)))
    sleep = SleepRecorder()

    with pytest.raises(RetryError) as excinfo:
        await retry_async(func, max_attempts=3, max_delay=60.0, sleep=sleep)

    assert func.calls == 3
    assert sleep.calls == [60.0, 60.0]
    assert isinstance(excinfo.value.last_exception, httpx.HTTPStatusError)


def json_generation_failed() -> openai.BadRequestError:
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    return openai.BadRequestError(
        "json_validate_failed",
        response=httpx.Response(400, request=request),
        body=None,
    )


def completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.mark.asyncio
async def test_also_retry_uses_fixed_delay() -> None:
    func = Flaky(json_generation_failed())
    sleep = SleepRecorder()

    result = await retry_async(func, sleep=sleep, also_retry=(openai.BadRequestError,), also_retry_delay=1.0)

    assert result == "ok"
    assert sleep.calls == [1.0]


def fake_openai(*effects) -> SimpleNamespace:
    create = AsyncMock(side_effect=list(effects))
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.mark.asyncio
async def test_json_mode_retries_failed_json_generation() -> None:
    sleep = SleepRecorder()
    provider = fake_openai(json_generation_failed(), completion('{"match_score": 70}'))
    client = LLMClient(api_key="test", max_retries=3, client=provider, sleep=sleep)

    text = await client.complete("sys", "user", model="full-model", max_tokens=500, temperature=0.3, json_mode=True)

    assert text == '{"match_score": 70}'
    assert provider.chat.completions.create.await_count == 2
    assert sleep.calls == [1.0]


@pytest.mark.asyncio
async def test_plain_mode_does_not_retry_bad_request() -> None:
    sleep = SleepRecorder()
    provider = fake_openai(json_generation_failed(), completion("42"))
    client = LLMClient(api_key="test", max_retries=3, client=provider, sleep=sleep)

    with pytest.raises(openai.BadRequestError):
        await client.complete("sys", "user", model="quick-model", max_tokens=5, temperature=0.1)

    assert provider.chat.completions.create.await_count == 1
    assert sleep.calls == []
