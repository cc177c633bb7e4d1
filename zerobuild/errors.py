"""Error taxonomy for the generation and publish pipelines."""

from enum import Enum
from typing import Iterable, TypeVar


class ErrorKind(str, Enum):
    """Classification of terminal pipeline failures."""

    TRANSIENT_RATE_LIMIT = "transient_rate_limit"
    AUTH_INVALID = "auth_invalid"
    PERMISSION_DENIED = "permission_denied"
    VALIDATION_FAILURE = "validation_failure"
    CONTENT_BLOCKED = "content_blocked"
    REPOSITORY_NOT_READY = "repository_not_ready"
    UNKNOWN_HTTP_ERROR = "unknown_http_error"
    NO_CREDENTIALS = "no_credentials"


# Lower index = more actionable for the user
KIND_PRIORITY: list[ErrorKind] = [
    ErrorKind.AUTH_INVALID,
    ErrorKind.PERMISSION_DENIED,
    ErrorKind.TRANSIENT_RATE_LIMIT,
]


class ZeroBuildError(Exception):
    """Base error carrying a classification and a remediation hint."""

    def __init__(self, message: str, kind: ErrorKind, hint: str = "") -> None:
        self.message = message
        self.kind = kind
        self.hint = hint
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {
            "detail": self.message,
            "kind": self.kind.value,
            "hint": self.hint,
        }


class GenerationError(ZeroBuildError):
    """A single backend failed terminally."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        hint: str = "",
        backend_id: str | None = None,
        model: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.backend_id = backend_id
        self.model = model
        self.status_code = status_code
        super().__init__(message, kind, hint)


class AggregateGenerationError(ZeroBuildError):
    """Every configured backend failed; carries the per-backend failures."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        hint: str = "",
        failures: list[GenerationError] | None = None,
    ) -> None:
        self.failures = failures or []
        super().__init__(message, kind, hint)


class InsufficientOutputError(ZeroBuildError):
    """Sanitized output is too small to be a usable program."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message,
            ErrorKind.VALIDATION_FAILURE,
            "The model returned too little code. Try again or add another AI provider key.",
        )


class GitHubAPIError(Exception):
    """Non-2xx response from the GitHub API."""

    def __init__(self, status_code: int, message: str, path: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.path = path
        super().__init__(f"GitHub API {status_code} on {path}: {message}")


class PublishError(ZeroBuildError):
    """A publish step failed; nothing is visible unless step is ref_update."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        hint: str = "",
        step: str = "",
        status_code: int | None = None,
    ) -> None:
        self.step = step
        self.status_code = status_code
        super().__init__(message, kind, hint)


def priority_of(kind: ErrorKind) -> int:
    """Rank a kind; everything outside the explicit order shares the last rank."""
    try:
        return KIND_PRIORITY.index(kind)
    except ValueError:
        return len(KIND_PRIORITY)


E = TypeVar("E", bound=ZeroBuildError)


def most_actionable(errors: Iterable[E]) -> E | None:
    """Pick the error the user can act on first.

    Ties keep the earliest error, so ordering among generic failures follows
    the order in which they happened.
    """
    best: E | None = None
    for error in errors:
        if best is None or priority_of(error.kind) < priority_of(best.kind):
            best = error
    return best
