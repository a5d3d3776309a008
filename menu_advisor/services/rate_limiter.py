"""
rate_limiter.py

In-memory, per-process rate limiter keyed by client IP.

Each key gets a fixed window: the first request opens the window,
later requests are counted until the window expires, then the count
starts again from 1. State lives only in this process and is lost on
restart. Running several server instances gives each its own counters.

Swap this class for a shared counter (e.g. Redis INCR + EXPIRE) if the
service is scaled horizontally; callers only use check().
"""

import threading
import time
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Expired records are swept every N calls
_PRUNE_EVERY = 100


@dataclass
class RateLimitRecord:
    count: int
    reset_time: float


class RateLimiter:
    """
    Fixed-window request counter.

    check() performs the whole read-compare-increment under one lock,
    so concurrent requests for the same key are counted exactly once each.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Parameters:
        - max_requests: allowed requests per key per window
        - window_seconds: window length in seconds
        - clock: time source, injectable for tests
        """

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()
        self._calls = 0

    def check(self, key: str) -> bool:
        """
        Count one request for key and report whether it is allowed.

        Returns:
        - True if the request is within the limit
        - False if the key already used max_requests in the current window
        """

        now = self._clock()

        with self._lock:
            self._calls += 1
            if self._calls % _PRUNE_EVERY == 0:
                self._prune(now)

            record = self._records.get(key)

            # New key or expired window: start a fresh window
            if record is None or now > record.reset_time:
                self._records[key] = RateLimitRecord(
                    count=1,
                    reset_time=now + self.window_seconds
                )
                return True

            if record.count >= self.max_requests:
                logger.warning(f"Rate limit reached for {key} ({record.count}/{self.max_requests})")
                return False

            record.count += 1
            return True

    def get_record(self, key: str) -> Optional[RateLimitRecord]:
        """Return a copy of the current record for key, if any."""
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            return RateLimitRecord(count=record.count, reset_time=record.reset_time)

    def reset(self) -> None:
        """Forget all keys."""
        with self._lock:
            self._records.clear()
            self._calls = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _prune(self, now: float) -> None:
        """Drop expired records. Called with the lock held."""
        expired = [key for key, record in self._records.items() if now > record.reset_time]
        for key in expired:
            del self._records[key]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit records")
