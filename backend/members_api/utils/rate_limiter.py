"""
In-memory, per-client-IP rate limiter for the registration endpoint.
Each STK push prompts a real phone, so repeated submissions are throttled.
"""
import time
from typing import Dict, Tuple

from fastapi import Request

from members_api.errors import RateLimitExceeded


class RateLimiter:
    """Fixed-window counter keyed by client IP. requests=0 disables it."""

    def __init__(self, requests: int, window: int):
        self.requests = requests
        self.window = window
        # {ip: (window_start, count)}
        self._store: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = 0.0

    def hit(self, key: str, now: float | None = None) -> None:
        if self.requests <= 0:
            return
        now = time.time() if now is None else now
        self._sweep(now)

        window_start, count = self._store.get(key, (now, 0))
        if now - window_start > self.window:
            window_start, count = now, 0

        if count >= self.requests:
            retry_in = int(self.window - (now - window_start))
            raise RateLimitExceeded(f"Try again in {retry_in} seconds.")

        self._store[key] = (window_start, count + 1)

    def _sweep(self, now: float) -> None:
        """Drop clients whose window has closed, at most once per window."""
        if now - self._last_sweep < self.window:
            return
        self._store = {
            key: entry for key, entry in self._store.items()
            if now - entry[0] <= self.window
        }
        self._last_sweep = now


def register_rate_limit(request: Request) -> bool:
    """FastAPI dependency applying the app's registration limiter."""
    ip = request.client.host if request.client else "unknown"
    request.app.state.register_limiter.hit(ip)
    return True
