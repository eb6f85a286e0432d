"""MutationGuard - Rate limit plus origin / anti-forgery checks for write paths."""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import urlsplit

from ticketcache.security.exceptions import MutationRejectedError
from ticketcache.security.rate_limit import RateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "ticketcache_csrf"
CSRF_HEADER_NAME = "x-csrf-token"
CSRF_MAX_AGE_SECONDS = 60 * 60 * 12

DEFAULT_LIMIT = 30
DEFAULT_WINDOW_MS = 60_000


class RejectionReason(StrEnum):
    """Machine-readable reason a mutation was rejected."""

    RATE_LIMITED = "rate_limited"
    UNTRUSTED_ORIGIN = "untrusted_origin"
    INVALID_CSRF_TOKEN = "invalid_csrf_token"


@dataclass(frozen=True)
class MutationRequest:
    """Request metadata the guard needs, already parsed by the caller.

    Attributes:
        bucket: Operation bucket name (e.g. "ticket-change").
        identity: Caller identity.
        source_address: Client network address.
        origin: Declared request origin (Origin header or Referer origin).
        csrf_header_token: Anti-forgery token sent with the request.
        csrf_cookie_token: Anti-forgery token bound to the caller's session.
        limit: Per-window limit override.
        window_ms: Window length override.
    """

    bucket: str
    identity: str
    source_address: str = "unknown"
    origin: str | None = None
    csrf_header_token: str | None = None
    csrf_cookie_token: str | None = None
    limit: int | None = None
    window_ms: int | None = None


@dataclass(frozen=True)
class GuardRejection:
    """Why and how a mutation was rejected."""

    status_code: int
    reason: RejectionReason
    retry_after_seconds: int | None = None
    rate_limit: RateLimitResult | None = None

    def headers(self) -> dict[str, str]:
        """HTTP headers to send with the rejection."""
        if self.rate_limit is None:
            return {}
        return {
            "Retry-After": str(self.rate_limit.retry_after_seconds),
            "X-RateLimit-Remaining": str(self.rate_limit.remaining),
            "X-RateLimit-Reset": str(self.rate_limit.reset_at_ms // 1000),
        }


@dataclass(frozen=True)
class GuardDecision:
    """Result of running the guard."""

    allowed: bool
    rejection: GuardRejection | None = None
    rate_limit: RateLimitResult | None = None


def issue_csrf_token() -> str:
    """Generate an opaque anti-forgery token."""
    return secrets.token_urlsafe(24)


def tokens_match(header_token: str | None, cookie_token: str | None) -> bool:
    """Constant-time comparison of the request token and the session token."""
    if not header_token or not cookie_token:
        return False
    return hmac.compare_digest(header_token.encode("utf-8"), cookie_token.encode("utf-8"))


def _origin_of(url: str) -> str | None:
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def request_origin(origin: str | None, referer: str | None) -> str | None:
    """Declared origin of a request: the Origin header, else the Referer's origin."""
    if origin:
        return _origin_of(origin)
    if referer:
        return _origin_of(referer)
    return None


def client_address(
    forwarded_for: str | None, real_ip: str | None, peer: str | None = None
) -> str:
    """Client address from proxy headers, falling back to the socket peer."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if real_ip:
        return real_ip.strip()
    return peer or "unknown"


class MutationGuard:
    """Gates state-mutating entry points.

    The rate limit is evaluated first; origin and anti-forgery checks only run
    for allowed requests and only when enforcement is enabled.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        canonical_origin: str,
        enforcement_enabled: bool = False,
        default_limit: int = DEFAULT_LIMIT,
        default_window_ms: int = DEFAULT_WINDOW_MS,
    ) -> None:
        """Initialize the guard.

        Args:
            limiter: Rate limiter shared by all guarded entry points.
            canonical_origin: The service's own origin (scheme://host[:port]).
            enforcement_enabled: Whether origin / anti-forgery checks reject.
            default_limit: Hits per window when a request has no override.
            default_window_ms: Window length when a request has no override.
        """
        self.limiter = limiter
        self.canonical_origin = _origin_of(canonical_origin)
        self.enforcement_enabled = enforcement_enabled
        self.default_limit = default_limit
        self.default_window_ms = default_window_ms

    def check(self, request: MutationRequest, now_ms: int | None = None) -> GuardDecision:
        """Run the guard for one request.

        Args:
            request: Parsed request metadata.
            now_ms: Current epoch milliseconds (defaults to wall clock).

        Returns:
            GuardDecision; rejections carry status 429 or 403.
        """
        limit = request.limit if request.limit is not None else self.default_limit
        window_ms = request.window_ms if request.window_ms is not None else self.default_window_ms
        result = self.limiter.check(
            bucket=request.bucket,
            key=f"{request.identity}:{request.source_address}",
            limit=limit,
            window_ms=window_ms,
            now_ms=now_ms,
        )
        if not result.allowed:
            return GuardDecision(
                allowed=False,
                rejection=GuardRejection(
                    status_code=429,
                    reason=RejectionReason.RATE_LIMITED,
                    retry_after_seconds=result.retry_after_seconds,
                    rate_limit=result,
                ),
                rate_limit=result,
            )

        if self.enforcement_enabled:
            if self.canonical_origin is None or request.origin != self.canonical_origin:
                logger.warning(
                    "Rejected %s mutation from untrusted origin %r", request.bucket, request.origin
                )
                return self._forbidden(RejectionReason.UNTRUSTED_ORIGIN, result)
            if not tokens_match(request.csrf_header_token, request.csrf_cookie_token):
                logger.warning("Rejected %s mutation with invalid CSRF token", request.bucket)
                return self._forbidden(RejectionReason.INVALID_CSRF_TOKEN, result)

        return GuardDecision(allowed=True, rate_limit=result)

    def enforce(self, request: MutationRequest, now_ms: int | None = None) -> None:
        """Run the guard and raise on rejection.

        Raises:
            MutationRejectedError: If the request is rejected.
        """
        decision = self.check(request, now_ms=now_ms)
        if decision.rejection is not None:
            raise MutationRejectedError(decision.rejection)

    @staticmethod
    def _forbidden(reason: RejectionReason, result: RateLimitResult) -> GuardDecision:
        return GuardDecision(
            allowed=False,
            rejection=GuardRejection(status_code=403, reason=reason),
            rate_limit=result,
        )
