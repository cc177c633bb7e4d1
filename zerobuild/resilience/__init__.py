"""Resilience patterns for ZeroBuild - retry policies and backoff."""

from zerobuild.resilience.retry import (
    RateLimitPolicy,
    RetryPolicy,
    fixed_backoff,
    linear_backoff,
    parse_retry_hint,
    retry_on,
)

__all__ = [
    "RateLimitPolicy",
    "RetryPolicy",
    "fixed_backoff",
    "linear_backoff",
    "parse_retry_hint",
    "retry_on",
]
