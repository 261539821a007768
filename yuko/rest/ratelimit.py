"""
Rate-limit bucket state.

A Ratelimit describes the remaining quota of one bucket (or, for the
instance owned by RESTManager, of the global limit shared by all buckets).
It is plain state: waiting and locking are done by RESTManager.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..constants import (
    HEADER_RATELIMIT_BUCKET,
    HEADER_RATELIMIT_LIMIT,
    HEADER_RATELIMIT_REMAINING,
    HEADER_RATELIMIT_RESET,
    HEADER_RATELIMIT_RESET_AFTER,
)

logger = logging.getLogger(__name__)


def _parseFloat(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid rate-limit header value '{value}'")
        return None


@dataclass
class Ratelimit:
    """
    Rate-limit state of a bucket.

    A bucket is exhausted while ``remaining == 0`` and the window hasn't been
    reset yet; no request for it may be dispatched until ``reset``.

    Attributes:
        limit: Max requests in the window
        remaining: Requests left in the current window, never negative
        reset: Unix time (seconds) when the current window closes
        delay: Last known wait duration (reset-after or retry-after), seconds
        window: Local window length for self-managed limits (global limiter),
            None when the window comes from response headers
        bucketHash: Bucket id reported by the API, if any
    """

    limit: int = 1
    remaining: int = 1
    reset: float = 0.0
    delay: float = 0.0
    window: Optional[float] = None
    bucketHash: Optional[str] = None

    def __post_init__(self):
        """Validate configuration values"""
        if self.limit <= 0:
            raise ValueError("limit must be positive")
        if self.window is not None and self.window <= 0:
            raise ValueError("window must be positive")
        self.remaining = max(0, self.remaining)

    def isExhausted(self, now: Optional[float] = None) -> bool:
        """Whether another request now would exceed the quota"""
        if now is None:
            now = time.time()
        return self.remaining <= 0 and now < self.reset

    def isExpired(self, now: Optional[float] = None) -> bool:
        """Whether the current window is over, so the state holds nothing worth keeping"""
        if now is None:
            now = time.time()
        return now >= self.reset

    def getDelay(self, now: Optional[float] = None) -> float:
        """Seconds left until the window resets"""
        if now is None:
            now = time.time()
        return max(0.0, self.reset - now)

    def renew(self, now: Optional[float] = None) -> None:
        """Open a new window with full quota."""
        if now is None:
            now = time.time()
        self.remaining = self.limit
        if self.window is not None:
            self.reset = now + self.window
            self.delay = self.window

    def consume(self) -> None:
        """Account one request locally."""
        self.remaining = max(0, self.remaining - 1)

    def lockFor(self, retryAfter: float, now: Optional[float] = None) -> None:
        """Mark the bucket exhausted for ``retryAfter`` seconds (429 handling)."""
        if now is None:
            now = time.time()
        self.remaining = 0
        self.delay = max(0.0, retryAfter)
        self.reset = now + self.delay

    def updateFromHeaders(self, headers: Mapping[str, Any], now: Optional[float] = None) -> bool:
        """
        Update bucket state from response headers.

        ``X-RateLimit-Reset-After`` is preferred over ``X-RateLimit-Reset``
        so local clock skew doesn't matter.

        Args:
            headers: Response headers (case-insensitive mapping)
            now: Current unix time

        Returns:
            True if any rate-limit header was present
        """
        if now is None:
            now = time.time()

        limit = _parseFloat(headers.get(HEADER_RATELIMIT_LIMIT))
        remaining = _parseFloat(headers.get(HEADER_RATELIMIT_REMAINING))
        reset = _parseFloat(headers.get(HEADER_RATELIMIT_RESET))
        resetAfter = _parseFloat(headers.get(HEADER_RATELIMIT_RESET_AFTER))
        bucketHash = headers.get(HEADER_RATELIMIT_BUCKET)

        if limit is None and remaining is None and reset is None and resetAfter is None:
            return False

        if limit is not None and limit > 0:
            self.limit = int(limit)
        if remaining is not None:
            self.remaining = max(0, int(remaining))
        if resetAfter is not None:
            self.delay = max(0.0, resetAfter)
            self.reset = now + self.delay
        elif reset is not None:
            self.reset = reset
            self.delay = max(0.0, reset - now)
        if bucketHash:
            self.bucketHash = bucketHash
        return True

    def toDict(self, now: Optional[float] = None) -> dict[str, Any]:
        """Statistics view of the bucket"""
        if now is None:
            now = time.time()
        return {
            "limit": self.limit,
            "remaining": self.remaining,
            "reset": self.reset,
            "delay": self.getDelay(now),
            "exhausted": self.isExhausted(now),
            "bucketHash": self.bucketHash,
        }
