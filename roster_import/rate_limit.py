"""Throttling applied between account provisioning calls."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

Sleeper = Callable[[float], None]
Clock = Callable[[], float]


@dataclass
class DelayPolicy:
    """Fixed pause inserted between consecutive records."""

    delay_seconds: float = 0.0


class RateLimiter:
    """Token bucket style rate limiter enforcing minimum interval between calls."""

    def __init__(
        self,
        calls_per_minute: Optional[float],
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._interval = 60.0 / float(calls_per_minute) if calls_per_minute else 0.0
        self._lock = threading.Lock()
        self._next_available = 0.0
        self._clock = clock
        self._sleep = sleep

    @property
    def interval(self) -> float:
        return self._interval

    def acquire(self) -> None:
        if self._interval <= 0:
            return
        with self._lock:
            now = self._clock()
            if now < self._next_available:
                self._sleep(self._next_available - now)
                now = self._clock()
            self._next_available = now + self._interval


class RecordThrottle:
    """Combines the fixed inter-record delay with an optional call rate limit."""

    def __init__(
        self,
        *,
        delay_policy: Optional[DelayPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._delay_policy = delay_policy or DelayPolicy()
        self._rate_limiter = rate_limiter or RateLimiter(None)
        self._sleep = sleep

    @property
    def delay_seconds(self) -> float:
        return self._delay_policy.delay_seconds

    def before_call(self) -> None:
        self._rate_limiter.acquire()

    def between_records(self) -> None:
        if self._delay_policy.delay_seconds > 0:
            self._sleep(self._delay_policy.delay_seconds)


NO_THROTTLE = RecordThrottle()

__all__ = ["DelayPolicy", "NO_THROTTLE", "RateLimiter", "RecordThrottle"]
