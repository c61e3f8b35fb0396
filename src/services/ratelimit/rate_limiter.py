"""
Fixed-Window Rate Limiter

Counts requests per client identifier within a fixed window. A client's
window starts with its first request and is replaced once the clock passes
the stored reset time.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from src.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class WindowState:
    count: int
    reset_at_ms: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    count: int
    retry_after: int = 0


def client_identifier(headers: Mapping[str, str]) -> str:
    """Identify the caller from proxy headers, else the shared unknown bucket."""
    return headers.get("x-forwarded-for") or headers.get("x-real-ip") or UNKNOWN_CLIENT


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class FixedWindowRateLimiter:
    """
    Per-client fixed-window request counter.

    Args:
        max_requests: Requests allowed per window
        window_ms: Window length in milliseconds
        clock: Millisecond clock, injectable for tests
    """

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock or _monotonic_ms
        self._windows: Dict[str, WindowState] = {}

    def check(self, client_id: str) -> RateLimitDecision:
        now = self._clock()

        state = self._windows.get(client_id)
        if state is None:
            state = WindowState(count=0, reset_at_ms=now + self.window_ms)
            self._windows[client_id] = state
        elif now > state.reset_at_ms:
            state.count = 0
            state.reset_at_ms = now + self.window_ms

        state.count += 1

        if state.count > self.max_requests:
            retry_after = max(1, math.ceil((state.reset_at_ms - now) / 1000))
            logger.warning("Rate limit exceeded", extra={"client_ip": client_id, "count": state.count})
            return RateLimitDecision(allowed=False, count=state.count, retry_after=retry_after)

        return RateLimitDecision(allowed=True, count=state.count)
