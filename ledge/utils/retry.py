"""
Backoff retries for outbound calls.

Congress.gov, LegiScan, the research APIs and the LLM provider all fail
transiently (timeouts, 5xx, 429 bursts). ``retry_async`` re-runs a
zero-argument coroutine factory on those failures and re-raises anything
else immediately, so callers still see 4xx and parse errors at once.

Responsibility: Retry transient HTTP and LLM provider failures
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar
import logging

import httpx
import openai

logger = logging.getLogger(__name__)

T = TypeVar('T')

# 5xx plus these are worth another attempt
RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})

TRANSIENT_ERRORS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
    openai.APITimeoutError,
    openai.APIConnectionError,
)


class RetryError(Exception):
    """Every attempt failed with a transient error"""

    def __init__(self, message: str, last_exception: Optional[Exception] = None):
        super().__init__(message)
        self.last_exception = last_exception

    def __str__(self) -> str:
        if self.last_exception is None:
            return super().__str__()
        return f"{super().__str__()}: {self.last_exception}"


def backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0, jitter: bool = True) -> float:
    """
    Exponential delay before retry number ``attempt`` (0-based).

    Example:
        >>> backoff_delay(2, jitter=False)
        4.0
    """
    delay = min(base_delay * (2 ** attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay


def status_code_of(error: Exception) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    if isinstance(error, openai.APIStatusError):
        return error.status_code
    return None


def retry_after_seconds(error: Exception) -> Optional[float]:
    """``Retry-After`` header of the failed response, in seconds."""
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    try:
        return max(float(value), 0.0) if value else None
    except ValueError:
        return None


def is_transient(error: Exception) -> bool:
    if isinstance(error, TRANSIENT_ERRORS):
        return True
    code = status_code_of(error)
    return code is not None and (code >= 500 or code in RETRYABLE_STATUS_CODES)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    logger_instance: Optional[logging.Logger] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    also_retry: Tuple[Type[Exception], ...] = (),
    also_retry_delay: float = 1.0,
) -> T:
    """
    Await ``func()`` until it succeeds or the attempts run out.

    A server-provided ``Retry-After`` wins over the computed backoff (still
    capped at ``max_delay``). Errors of an ``also_retry`` type are retried
    after a fixed ``also_retry_delay`` even when they are not transient.

    Raises:
        RetryError: The last attempt failed with a transient error
        Exception: A non-transient error, re-raised unchanged
    """
    log = logger_instance or logger

    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            extra = bool(also_retry) and isinstance(e, also_retry)
            if not extra and not is_transient(e):
                raise
            if attempt + 1 >= max_attempts:
                log.error(f"Giving up after {max_attempts} attempts: {e}")
                raise RetryError(f"Failed after {max_attempts} attempts", last_exception=e)

            hinted = retry_after_seconds(e)
            if extra:
                delay = also_retry_delay
            elif hinted is not None:
                delay = min(hinted, max_delay)
            else:
                delay = backoff_delay(attempt, base_delay, max_delay)
            log.warning(f"Attempt {attempt + 1}/{max_attempts} failed ({e}), retrying in {delay:.1f}s")
            await sleep(delay)

    raise RetryError(f"Failed after {max_attempts} attempts")
