"""Declarative retry policies for backend calls and publish readiness waits."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*s?\s*$")


def linear_backoff(base_seconds: float) -> Callable[[int], float]:
    """Backoff growing with the attempt number: base * attempt."""

    def backoff(attempt: int) -> float:
        return base_seconds * attempt

    return backoff


def fixed_backoff(seconds: float) -> Callable[[int], float]:
    """Same delay on every attempt."""

    def backoff(attempt: int) -> float:
        return seconds

    return backoff


def retry_on(*statuses: int) -> Callable[[int], bool]:
    """Build an is_retryable predicate for a set of HTTP statuses."""
    allowed = frozenset(statuses)

    def is_retryable(status: int) -> bool:
        return status in allowed

    return is_retryable


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try, how long to wait, and on which statuses.

    Usage:
        policy = RetryPolicy(max_attempts=3, backoff=linear_backoff(5.0), max_delay=15.0)
        for attempt in policy.attempts():
            ...
            await asyncio.sleep(policy.delay_for(attempt, hint=retry_after))
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default=linear_backoff(5.0))
    is_retryable: Callable[[int], bool] = field(default=retry_on(429))
    max_delay: float = 15.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def attempts(self) -> range:
        """Attempt numbers, 1-based."""
        return range(1, self.max_attempts + 1)

    def has_more(self, attempt: int) -> bool:
        return attempt < self.max_attempts

    def delay_for(self, attempt: int, hint: float | None = None) -> float:
        """Seconds to wait after a failed attempt, clamped to max_delay."""
        delay = hint if hint is not None and hint >= 0 else self.backoff(attempt)
        return max(0.0, min(delay, self.max_delay))


@dataclass(frozen=True)
class RateLimitPolicy:
    """Per-backend 429 handling parameters."""

    base_delay_seconds: float = 5.0
    max_delay_seconds: float = 15.0
    honor_retry_after: bool = True

    def to_retry_policy(self, max_attempts: int) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=max_attempts,
            backoff=linear_backoff(self.base_delay_seconds),
            is_retryable=retry_on(429),
            max_delay=self.max_delay_seconds,
        )


def parse_duration(value: Any) -> float | None:
    """Parse '5', '5s' or '1.5s' into seconds."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def parse_retry_hint(headers: Mapping[str, str], body: Any = None) -> float | None:
    """Read a retry hint from a Retry-After header or a retryDelay in the body.

    Gemini reports the delay inside error.details[].retryDelay; other
    backends use the standard header.
    """
    header = headers.get("retry-after") or headers.get("Retry-After")
    hint = parse_duration(header)
    if hint is not None:
        return hint

    if isinstance(body, dict):
        error = body.get("error")
        details = error.get("details", []) if isinstance(error, dict) else []
        for detail in details if isinstance(details, list) else []:
            if isinstance(detail, dict) and "retryDelay" in detail:
                hint = parse_duration(detail["retryDelay"])
                if hint is not None:
                    return hint

    if header:
        logger.debug(f"Ignoring unparseable Retry-After header: {header!r}")
    return None
