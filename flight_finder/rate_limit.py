"""
Per-client request limiting for the HTTP API.

Each client (keyed by address) gets ``max_requests`` calls in any sliding
window of ``window_seconds``. A call over the limit is not recorded, so a
client that keeps hammering the API is not locked out past the window.

Usage:
    >>> decision = get_rate_limiter().check(client_ip)
    >>> if not decision.allowed:
    ...     respond_429(retry_after=decision.retry_after)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, NamedTuple, Optional

from .config import FlightFinderConfig, get_config

logger = logging.getLogger(__name__)


class RateLimitDecision(NamedTuple):
    """Outcome of one ``RateLimiter.check`` call."""
    allowed: bool
    remaining: int
    retry_after: float


class RateLimiter:
    """
    Sliding window limiter keyed by client id.

    Attributes:
        max_requests: Calls allowed per client per window
        window_seconds: Length of the sliding window
        enabled: When False every call is allowed and nothing is recorded
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: int = 60,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.enabled = enabled
        self._clock = clock
        self._seen: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[FlightFinderConfig] = None) -> "RateLimiter":
        config = config or get_config()
        return cls(
            max_requests=config.rate_limit_requests,
            window_seconds=config.rate_limit_window_seconds,
            enabled=config.rate_limit_enabled,
        )

    def _window(self, client_id: str, now: float) -> Deque[float]:
        stamps = self._seen[client_id]
        while stamps and stamps[0] <= now - self.window_seconds:
            stamps.popleft()
        return stamps

    def check(self, client_id: str) -> RateLimitDecision:
        """
        Record a call for ``client_id`` if it fits in the window.

        Returns:
            Whether the call is allowed, calls left afterwards, and the
            seconds until the next free slot (0 when allowed)
        """
        if not self.enabled:
            return RateLimitDecision(True, self.max_requests, 0.0)

        with self._lock:
            now = self._clock()
            stamps = self._window(client_id, now)
            if len(stamps) >= self.max_requests:
                retry_after = max(0.0, stamps[0] + self.window_seconds - now)
                logger.debug(f"Client {client_id} over limit; retry in {retry_after:.1f}s")
                return RateLimitDecision(False, 0, retry_after)
            stamps.append(now)
            return RateLimitDecision(True, self.max_requests - len(stamps), 0.0)

    def is_allowed(self, client_id: str) -> bool:
        return self.check(client_id).allowed

    def remaining(self, client_id: str) -> int:
        if not self.enabled:
            return self.max_requests
        with self._lock:
            return max(0, self.max_requests - len(self._window(client_id, self._clock())))

    def wait_time(self, client_id: str) -> float:
        """Seconds until ``client_id`` may call again; 0 if it may now."""
        if not self.enabled:
            return 0.0
        with self._lock:
            now = self._clock()
            stamps = self._window(client_id, now)
            if len(stamps) < self.max_requests:
                return 0.0
            return max(0.0, stamps[0] + self.window_seconds - now)

    def reset(self) -> None:
        with self._lock:
            self._seen.clear()


_limiter: Optional[RateLimiter] = None
_limiter_guard = threading.Lock()


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter, built from the configuration on first use."""
    global _limiter
    with _limiter_guard:
        if _limiter is None:
            _limiter = RateLimiter.from_config()
        return _limiter


def reset_rate_limiter() -> None:
    """Forget the process-wide limiter; the next call rebuilds it from config."""
    global _limiter
    with _limiter_guard:
        _limiter = None


__all__ = [
    "RateLimitDecision",
    "RateLimiter",
    "get_rate_limiter",
    "reset_rate_limiter",
]
