"""
Bounded Polling Module

Architectural Intent:
- One retry abstraction shared by rollout, load-balancer and health polling
- A loop of (probe, sleep fixed interval, check elapsed) until success or a hard ceiling
- Cancellation is expressed purely as timeout expiry

Design Decisions:
- No backoff and no jitter; the interval is fixed
- Clock and sleep are injectable so callers can be exercised with simulated time
- A probe signals "not yet" by returning None; any other value ends the loop
- The probe receives the remaining time budget so blocking probes can bound themselves
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]
Probe = Callable[[float], Awaitable[Optional[T]]]


@dataclass(frozen=True)
class PollResult(Generic[T]):
    value: Optional[T]
    attempts: int
    elapsed: float

    @property
    def succeeded(self) -> bool:
        return self.value is not None


class PollerError(Exception):
    pass


class BoundedPoller:
    def __init__(
        self,
        interval: float,
        timeout: float,
        max_attempts: Optional[int] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
        name: str = "poll",
    ) -> None:
        if interval < 0:
            raise PollerError(f"interval cannot be negative, got {interval}")
        if timeout < 0:
            raise PollerError(f"timeout cannot be negative, got {timeout}")
        if max_attempts is not None and max_attempts < 1:
            raise PollerError(f"max_attempts must be positive, got {max_attempts}")
        self.interval = interval
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._clock = clock
        self._sleep = sleep
        self.name = name

    def _exhausted(self, elapsed: float, attempts: int) -> bool:
        if elapsed >= self.timeout:
            return True
        return self.max_attempts is not None and attempts >= self.max_attempts

    async def run(self, probe: Probe[T]) -> PollResult[T]:
        start = self._clock()
        attempts = 0

        while True:
            elapsed = self._clock() - start
            if self._exhausted(elapsed, attempts):
                logger.debug(
                    "%s: gave up after %d attempt(s), %.1fs", self.name, attempts, elapsed
                )
                return PollResult(value=None, attempts=attempts, elapsed=elapsed)

            attempts += 1
            value = await probe(self.timeout - elapsed)
            if value is not None:
                elapsed = self._clock() - start
                logger.debug(
                    "%s: succeeded on attempt %d after %.1fs", self.name, attempts, elapsed
                )
                return PollResult(value=value, attempts=attempts, elapsed=elapsed)

            # Don't sleep past the last permitted attempt
            if self.max_attempts is not None and attempts >= self.max_attempts:
                continue
            await self._sleep(self.interval)
