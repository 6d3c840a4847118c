"""Fixed-window rate limiting for the admin routes."""

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from fastapi import Request

import config
from errors import RateLimitError
from logging_config import get_logger

logger = get_logger("rate_limit")


class FixedWindowRateLimiter:
    """Counts requests per client in fixed windows.

    Windows are kept in start order, so expired ones are dropped from the
    front on every access and the table never holds more than
    ``max_clients`` entries.
    """

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        max_clients: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.max_clients = max_clients
        self._clock = clock
        self._lock = threading.Lock()
        # client -> [window_reset_at, count]
        self._windows: "OrderedDict[str, list]" = OrderedDict()

    def _evict(self, now: float) -> None:
        while self._windows:
            key, (reset_at, _) = next(iter(self._windows.items()))
            if reset_at > now:
                break
            del self._windows[key]

    def hit(self, key: str) -> bool:
        """Record one request for ``key``; return False once it is over the limit."""
        with self._lock:
            now = self._clock()
            self._evict(now)

            window = self._windows.get(key)
            if window is None:
                while len(self._windows) >= self.max_clients:
                    self._windows.popitem(last=False)
                window = [now + self.window_seconds, 0]
                self._windows[key] = window

            window[1] += 1
            return window[1] <= self.max_requests

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


admin_limiter = FixedWindowRateLimiter(
    window_seconds=config.ADMIN_RATE_LIMIT_WINDOW_SECONDS,
    max_requests=config.ADMIN_RATE_LIMIT_MAX_REQUESTS,
    max_clients=config.ADMIN_RATE_LIMIT_MAX_CLIENTS,
)


def client_address(request: Request) -> str:
    forwarded: Optional[str] = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def admin_rate_limit(request: Request) -> None:
    """FastAPI dependency rejecting clients over the admin request budget."""
    ip = client_address(request)
    if not admin_limiter.hit(ip):
        logger.warning("Admin rate limit exceeded for %s", ip)
        raise RateLimitError("Too many requests (admin rate limit)")
