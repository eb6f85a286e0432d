"""Fixed-window rate limiter over an injectable bucket store."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

# Hits between opportunistic sweeps of expired buckets
DEFAULT_PRUNE_EVERY = 256


@dataclass
class BucketState:
    """Counter for one (bucket, identity) window."""

    count: int
    reset_at_ms: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit hit.

    Attributes:
        allowed: Whether the hit is within the limit.
        remaining: Hits left in the current window.
        reset_at_ms: Epoch milliseconds when the window resets.
        retry_after_seconds: Seconds until the window resets, rounded up.
    """

    allowed: bool
    remaining: int
    reset_at_ms: int
    retry_after_seconds: int


class RateLimitStore(Protocol):
    """Interface for bucket state storage."""

    def get(self, key: str) -> BucketState | None:
        """Get the bucket for a key."""
        ...

    def set(self, key: str, state: BucketState) -> None:
        """Store the bucket for a key."""
        ...

    def delete(self, key: str) -> None:
        """Drop the bucket for a key."""
        ...

    def keys(self) -> list[str]:
        """All stored keys (used for pruning)."""
        ...


class InMemoryRateLimitStore:
    """Process-local bucket store for single-process deployments."""

    def __init__(self) -> None:
        self._buckets: dict[str, BucketState] = {}

    def get(self, key: str) -> BucketState | None:
        return self._buckets.get(key)

    def set(self, key: str, state: BucketState) -> None:
        self._buckets[key] = state

    def delete(self, key: str) -> None:
        self._buckets.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    """Fixed-window counter keyed by ``bucket:key``.

    Bursts straddling a window boundary are accepted. Check-and-increment is
    serialized with a lock so concurrent hits never lose increments.
    """

    def __init__(
        self, store: RateLimitStore | None = None, prune_every: int = DEFAULT_PRUNE_EVERY
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Bucket store. Defaults to a fresh in-memory store.
            prune_every: Expired buckets are dropped once per this many hits.
        """
        self.store: RateLimitStore = store if store is not None else InMemoryRateLimitStore()
        self.prune_every = max(1, prune_every)
        self._hits = 0
        self._lock = threading.Lock()

    def check(
        self,
        bucket: str,
        key: str,
        limit: int,
        window_ms: int,
        now_ms: int | None = None,
    ) -> RateLimitResult:
        """Record a hit and report whether it is allowed.

        Args:
            bucket: Operation bucket name.
            key: Caller identity within the bucket.
            limit: Hits allowed per window.
            window_ms: Window length in milliseconds.
            now_ms: Current epoch milliseconds (defaults to wall clock).

        Returns:
            RateLimitResult for this hit.
        """
        now = _now_ms() if now_ms is None else now_ms
        with self._lock:
            result = self._hit(f"{bucket}:{key}", limit, window_ms, now)
            self._hits += 1
            prune_due = self._hits % self.prune_every == 0
        if not result.allowed:
            logger.info("Rate limit exceeded for %s", bucket)
        if prune_due:
            self.prune(now)
        return result

    def _hit(self, composite_key: str, limit: int, window_ms: int, now: int) -> RateLimitResult:
        # Caller holds the lock
        existing = self.store.get(composite_key)

        if existing is None or existing.reset_at_ms <= now:
            reset_at = now + window_ms
            self.store.set(composite_key, BucketState(count=1, reset_at_ms=reset_at))
            return RateLimitResult(
                allowed=True,
                remaining=max(0, limit - 1),
                reset_at_ms=reset_at,
                retry_after_seconds=math.ceil(window_ms / 1000),
            )

        retry_after = math.ceil(max(0, existing.reset_at_ms - now) / 1000)

        if existing.count >= limit:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at_ms=existing.reset_at_ms,
                retry_after_seconds=retry_after,
            )

        updated = BucketState(count=existing.count + 1, reset_at_ms=existing.reset_at_ms)
        self.store.set(composite_key, updated)
        return RateLimitResult(
            allowed=True,
            remaining=max(0, limit - updated.count),
            reset_at_ms=updated.reset_at_ms,
            retry_after_seconds=retry_after,
        )

    def prune(self, now_ms: int | None = None) -> int:
        """Drop expired buckets.

        Returns:
            Number of buckets removed.
        """
        now = _now_ms() if now_ms is None else now_ms
        removed = 0
        with self._lock:
            for key in self.store.keys():
                state = self.store.get(key)
                if state is not None and state.reset_at_ms <= now:
                    self.store.delete(key)
                    removed += 1
        if removed:
            logger.debug("Pruned %d expired rate-limit buckets", removed)
        return removed
