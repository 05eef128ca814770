"""
Request pacing for the external APIs.

Responsibility: Token bucket rate limiting for adapter requests
"""

import asyncio
import time


class RateLimiter:
    """
    Token bucket: ``rate`` tokens per second, at most ``burst`` banked.

    ``hits`` counts acquisitions that had to wait; adapters report it on
    their responses.
    """

    def __init__(self, rate: float, burst: int = 1):
        if rate <= 0:
            raise ValueError("Rate must be positive")
        if burst < 1:
            raise ValueError("Burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self.hits = 0
        self._available = float(burst)
        self._stamp = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            self._available = min(float(self.burst), self._available + (now - self._stamp) * self.rate)
            self._stamp = now

            shortfall = 1.0 - self._available
            if shortfall > 0:
                self.hits += 1
                await asyncio.sleep(shortfall / self.rate)
                self._available = 1.0
                self._stamp = time.monotonic()

            self._available -= 1.0
