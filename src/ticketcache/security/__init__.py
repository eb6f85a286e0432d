"""Security - Fixed-window rate limiting and the mutation guard."""

from ticketcache.security.exceptions import (
    MissingCredentialsError,
    MutationRejectedError,
    SecurityError,
    UntrackedRepoAccessError,
)
from ticketcache.security.mutation_guard import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    GuardDecision,
    GuardRejection,
    MutationGuard,
    MutationRequest,
    RejectionReason,
    client_address,
    issue_csrf_token,
    request_origin,
    tokens_match,
)
from ticketcache.security.rate_limit import (
    BucketState,
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitResult,
    RateLimitStore,
)

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_HEADER_NAME",
    "BucketState",
    "GuardDecision",
    "GuardRejection",
    "InMemoryRateLimitStore",
    "MissingCredentialsError",
    "MutationGuard",
    "MutationRejectedError",
    "MutationRequest",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimiter",
    "RejectionReason",
    "SecurityError",
    "UntrackedRepoAccessError",
    "client_address",
    "issue_csrf_token",
    "request_origin",
    "tokens_match",
]
