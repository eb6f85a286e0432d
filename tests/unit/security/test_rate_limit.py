"""Unit tests for the fixed-window rate limiter."""

import threading

import pytest

from ticketcache.security import BucketState, InMemoryRateLimitStore, RateLimiter

WINDOW_MS = 60_000
T0 = 1_700_000_000_000


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(InMemoryRateLimitStore())


@pytest.mark.unit
class TestRateLimiter:
    """Tests for RateLimiter.check."""

    def test_window_sequence(self, limiter: RateLimiter) -> None:
        """Three hits allowed (2, 1, 0 remaining), the fourth denied, fresh window after reset."""
        results = [
            limiter.check("ticket-change", "alice", 3, WINDOW_MS, now_ms=T0 + i * 1000)
            for i in range(4)
        ]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results[:3]] == [2, 1, 0]
        assert results[3].retry_after_seconds == 57
        assert results[3].reset_at_ms == T0 + WINDOW_MS

        fifth = limiter.check("ticket-change", "alice", 3, WINDOW_MS, now_ms=T0 + WINDOW_MS)

        assert fifth.allowed is True
        assert fifth.remaining == 2
        assert fifth.reset_at_ms == T0 + 2 * WINDOW_MS

    def test_retry_after_rounds_up(self, limiter: RateLimiter) -> None:
        limiter.check("b", "k", 1, WINDOW_MS, now_ms=T0)

        denied = limiter.check("b", "k", 1, WINDOW_MS, now_ms=T0 + WINDOW_MS - 1)

        assert denied.allowed is False
        assert denied.retry_after_seconds == 1

    def test_buckets_and_keys_are_independent(self, limiter: RateLimiter) -> None:
        limiter.check("repo-enable", "alice", 1, WINDOW_MS, now_ms=T0)

        assert limiter.check("repo-enable", "bob", 1, WINDOW_MS, now_ms=T0).allowed
        assert limiter.check("pr-refresh", "alice", 1, WINDOW_MS, now_ms=T0).allowed
        assert not limiter.check("repo-enable", "alice", 1, WINDOW_MS, now_ms=T0).allowed

    def test_composite_store_key(self) -> None:
        store = InMemoryRateLimitStore()
        RateLimiter(store).check("pr-status", "alice:10.0.0.1", 5, WINDOW_MS, now_ms=T0)

        assert store.keys() == ["pr-status:alice:10.0.0.1"]
        assert store.get("pr-status:alice:10.0.0.1") == BucketState(1, T0 + WINDOW_MS)

    def test_denied_hits_do_not_extend_window(self, limiter: RateLimiter) -> None:
        limiter.check("b", "k", 1, WINDOW_MS, now_ms=T0)
        for i in range(5):
            limiter.check("b", "k", 1, WINDOW_MS, now_ms=T0 + i)

        assert limiter.check("b", "k", 1, WINDOW_MS, now_ms=T0 + WINDOW_MS).allowed

    def test_concurrent_hits_lose_no_increments(self) -> None:
        store = InMemoryRateLimitStore()
        limiter = RateLimiter(store)
        allowed: list[bool] = []
        lock = threading.Lock()

        def hit() -> None:
            for _ in range(50):
                result = limiter.check("b", "k", 1000, WINDOW_MS, now_ms=T0)
                with lock:
                    allowed.append(result.allowed)

        threads = [threading.Thread(target=hit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(allowed)
        assert store.get("b:k").count == 400


@pytest.mark.unit
class TestPrune:
    """Tests for RateLimiter.prune."""

    def test_prunes_only_expired(self) -> None:
        store = InMemoryRateLimitStore()
        limiter = RateLimiter(store)
        limiter.check("b", "old", 5, 1000, now_ms=T0)
        limiter.check("b", "new", 5, WINDOW_MS, now_ms=T0)

        removed = limiter.prune(now_ms=T0 + 1000)

        assert removed == 1
        assert store.keys() == ["b:new"]

    def test_pruning_does_not_change_outcomes(self) -> None:
        limiter = RateLimiter()
        limiter.check("b", "k", 1, 1000, now_ms=T0)
        limiter.prune(now_ms=T0 + 5000)

        assert limiter.check("b", "k", 1, 1000, now_ms=T0 + 5000).allowed
        assert len(limiter.store) == 1

    def test_expired_buckets_swept_during_checks(self) -> None:
        """Expired buckets disappear without an explicit prune call."""
        store = InMemoryRateLimitStore()
        limiter = RateLimiter(store, prune_every=10)
        for i in range(9):
            limiter.check("b", f"caller-{i}", 5, 1000, now_ms=T0)
        assert len(store) == 9

        limiter.check("b", "late", 5, 1000, now_ms=T0 + 2000)

        assert store.keys() == ["b:late"]

    def test_live_buckets_survive_sweep(self) -> None:
        store = InMemoryRateLimitStore()
        limiter = RateLimiter(store, prune_every=2)
        limiter.check("b", "k", 2, WINDOW_MS, now_ms=T0)
        limiter.check("b", "other", 2, WINDOW_MS, now_ms=T0 + 1000)

        assert sorted(store.keys()) == ["b:k", "b:other"]
        assert limiter.check("b", "k", 2, WINDOW_MS, now_ms=T0 + 2000).allowed
        assert not limiter.check("b", "k", 2, WINDOW_MS, now_ms=T0 + 3000).allowed
