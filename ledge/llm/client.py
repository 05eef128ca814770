"""
LLM client.

Thin wrapper over ``openai.AsyncOpenAI`` pointed at an OpenAI-compatible
endpoint (Groq by default). One configured client is reused per process;
services receive it through their constructors so tests can pass a fake.

Responsibility: Chat completions with retry on provider rate limits
"""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol
import logging

import openai

from ..config import settings
from ..utils.retry import retry_async

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that can turn a system + user prompt into text."""

    async def complete(
        self,
        system: str,
        user: str,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        ...


class LLMClient:
    """
    Chat completion client with lazy construction.

    Example:
        client = LLMClient()
        text = await client.complete(
            "Reply with a number", "How relevant is...",
            model="llama-3.1-8b-instant", max_tokens=5, temperature=0.1,
        )
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        client: Optional[openai.AsyncOpenAI] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_key = api_key or settings.llm.api_key
        self.base_url = base_url or settings.llm.base_url
        self.timeout_seconds = timeout_seconds or settings.llm.timeout_seconds
        self.max_retries = settings.llm.max_retries if max_retries is None else max_retries
        self._client = client
        self.sleep = sleep

    @property
    def client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                logger.warning("No LLM API key configured (GROQ_API_KEY / OPENAI_API_KEY)")
            # Retries are handled here so rate-limit hints are honoured uniformly
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key or "missing-key",
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        system: str,
        user: str,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message text.

        JSON mode requests a ``json_object`` response. The provider answers a
        failed JSON generation with a 400, so in JSON mode a 400 is retried
        after a one-second pause.

        Raises:
            RetryError: When retryable failures persist
            openai.OpenAIError: For non-retryable provider errors
        """
        request = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        async def call() -> str:
            response = await self.client.chat.completions.create(**request)
            return response.choices[0].message.content or ""

        return await retry_async(
            call,
            max_attempts=self.max_retries + 1,
            base_delay=2.0,
            max_delay=settings.llm.max_retry_delay_seconds,
            logger_instance=logger,
            sleep=self.sleep,
            also_retry=(openai.BadRequestError,) if json_mode else (),
            also_retry_delay=1.0,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


_default_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Process-wide client, created on first use."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client
