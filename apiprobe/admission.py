# apiprobe/admission.py
"""
Shared admission gate for outbound requests.

One controller is created per scan and every probe request passes through
it. Two limits apply at once:

  - a token bucket refilled continuously at ``requests_per_second`` (starts
    full, holds at most one second worth of tokens)
  - a ceiling on requests currently in flight

Waiters for a token queue on an ``asyncio.Lock``, which wakes them in
arrival order, so admission is first-requested-first-admitted.
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Callable, Dict

logger = logging.getLogger(__name__)

DEFAULT_REQUESTS_PER_SECOND = 10
DEFAULT_MAX_IN_FLIGHT = 5


class AdmissionController:
    def __init__(
        self,
        requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        clock: Callable[[], float] = time.monotonic,
    ):
        if requests_per_second <= 0:
            requests_per_second = DEFAULT_REQUESTS_PER_SECOND
        if max_in_flight <= 0:
            max_in_flight = DEFAULT_MAX_IN_FLIGHT

        self.requests_per_second = requests_per_second
        self.max_in_flight = max_in_flight
        self._clock = clock
        self._tokens = float(requests_per_second)
        self._last_refill = clock()
        self._slots = asyncio.Semaphore(max_in_flight)
        self._queue = asyncio.Lock()
        self._in_flight = 0

        logger.info(
            "Admission controller initialized: %d req/s, %d in flight",
            requests_per_second, max_in_flight,
        )

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(
                float(self.requests_per_second),
                self._tokens + elapsed * self.requests_per_second,
            )
            self._last_refill = now

    async def _take_token(self) -> None:
        async with self._queue:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                await asyncio.sleep((1.0 - self._tokens) / self.requests_per_second)

    async def acquire(self) -> None:
        """Block until both a concurrency slot and a rate token are available."""
        await self._slots.acquire()
        try:
            await self._take_token()
        except BaseException:
            # cancelled while queued for a token: give the slot back
            self._slots.release()
            raise
        self._in_flight += 1

    def release(self) -> None:
        """Free the slot taken by the matching acquire()."""
        self._in_flight -= 1
        self._slots.release()

    @asynccontextmanager
    async def slot(self):
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    def stats(self) -> Dict[str, float]:
        self._refill()
        return {
            "current_tokens": self._tokens,
            "max_tokens": self.requests_per_second,
            "tokens_per_second": self.requests_per_second,
            "concurrent_slots_total": self.max_in_flight,
            "concurrent_slots_in_use": self._in_flight,
        }
