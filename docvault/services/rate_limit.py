# docvault/services/rate_limit.py
import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Optional, Set

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class RateLimiter:
    """
    Fixed-window request counter keyed by client identifier, on top of a
    ``limits`` in-memory fixed window.

    The first request of a window opens it, later requests in the same window
    count against ``max_requests``. Denied requests do not consume budget.
    ``run_sweeper`` drops expired windows so abandoned identifiers do not
    accumulate.
    """

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        self.max_requests = int(max_requests)
        self.window_seconds = int(window_seconds)
        self._item = RateLimitItemPerSecond(self.max_requests, self.window_seconds)
        self._strategy = FixedWindowRateLimiter(MemoryStorage())
        self._identifiers: Set[str] = set()
        # test-then-hit must not interleave if called from worker threads
        self._lock = threading.Lock()

    def check(self, identifier: str) -> bool:
        """Record a request; return True if it is allowed."""
        with self._lock:
            if not self._strategy.test(self._item, identifier):
                return False
            self._identifiers.add(identifier)
            return self._strategy.hit(self._item, identifier)

    def is_rate_limited(self, identifier: str) -> bool:
        return not self.check(identifier)

    def _expired(self, identifier: str) -> bool:
        stats = self._strategy.get_window_stats(self._item, identifier)
        return stats.remaining >= self.max_requests

    def sweep(self) -> int:
        with self._lock:
            expired = [i for i in self._identifiers if self._expired(i)]
            for identifier in expired:
                self._strategy.clear(self._item, identifier)
                self._identifiers.discard(identifier)
        return len(expired)

    def __len__(self) -> int:
        return len(self._identifiers)

    async def run_sweeper(self, interval: Optional[float] = None) -> None:
        while True:
            await asyncio.sleep(interval or self.window_seconds)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limiter swept %s expired entries", removed)


@dataclass
class RateLimiters:
    general: RateLimiter
    auth: RateLimiter
    upload: RateLimiter

    def for_path(self, path: str) -> RateLimiter:
        if path.startswith("/auth/"):
            return self.auth
        if path.startswith("/documents/upload"):
            return self.upload
        return self.general

    def all(self):
        return (self.general, self.auth, self.upload)


def client_identifier(headers: Mapping[str, str], client_host: Optional[str] = None) -> str:
    """
    First hop of X-Forwarded-For, then X-Real-IP, then the socket peer.
    Clients with none of these share the ``unknown`` bucket.
    """
    forwarded = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return client_host or UNKNOWN_CLIENT
