"""Per-request data objects shared by the generation and publish pipelines."""

import re
from dataclasses import dataclass, field
from typing import Any, Iterator

from zerobuild.resilience.retry import RateLimitPolicy

_SLUG_INVALID = re.compile(r"[^a-z0-9-]")


def slugify(name: str) -> str:
    """Normalize an app name into a repository slug."""
    return _SLUG_INVALID.sub("-", name.lower())


@dataclass(frozen=True)
class GenerationRequest:
    """What the user asked for."""

    prompt: str
    enrichment: str | None = None
    preferred_backend_id: str | None = None


@dataclass(frozen=True)
class BackendCredentials:
    """API keys supplied by the caller or by settings."""

    gemini_api_key: str = ""
    groq_api_key: str = ""
    huggingface_api_key: str = ""
    # Legacy single key, used for Gemini when no per-backend key is present
    llm_api_key: str = ""


@dataclass(frozen=True)
class BackendDescriptor:
    """Static description of one generation backend."""

    id: str
    credential: str
    model_fallback_list: tuple[str, ...]
    rate_limit_policy: RateLimitPolicy = field(default_factory=RateLimitPolicy)


@dataclass(frozen=True)
class GenerationParams:
    """Per-call generation parameters."""

    temperature: float = 0.7
    max_output_tokens: int = 8192
    min_response_chars: int = 100


@dataclass(frozen=True)
class GenerationResult:
    """The one accepted generation for a request."""

    text: str
    origin_backend_id: str
    model_used: str


@dataclass
class RepairReport:
    """Diagnostics from the repair engine. Not authoritative."""

    braces_appended: int = 0
    parens_appended: int = 0
    brackets_appended: int = 0
    fixes_applied: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.fixes_applied)

    def to_dict(self) -> dict[str, Any]:
        return {
            "braces_appended": self.braces_appended,
            "parens_appended": self.parens_appended,
            "brackets_appended": self.brackets_appended,
            "fixes_applied": list(self.fixes_applied),
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of the semantic checks on generated code."""

    valid: bool
    error: str | None = None
    line: int | None = None


@dataclass
class GeneratedApp:
    """Generation result after sanitizing, repair and checking."""

    result: GenerationResult
    code: str
    report: RepairReport
    validation: ValidationResult


@dataclass(frozen=True)
class ClarifyingQuestion:
    question: str
    options: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"question": self.question, "options": list(self.options)}


@dataclass(frozen=True)
class ManifestEntry:
    path: str
    content: str


@dataclass(frozen=True)
class PublishManifest:
    """Ordered set of files written together in one commit."""

    entries: tuple[ManifestEntry, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for entry in self.entries:
            if not entry.path or entry.path.startswith("/"):
                raise ValueError(f"Invalid manifest path: {entry.path!r}")
            if entry.path in seen:
                raise ValueError(f"Duplicate manifest path: {entry.path}")
            seen.add(entry.path)

    @classmethod
    def from_files(cls, files: list[tuple[str, str]]) -> "PublishManifest":
        return cls(tuple(ManifestEntry(path, content) for path, content in files))

    @property
    def paths(self) -> list[str]:
        return [entry.path for entry in self.entries]

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class RepositoryTarget:
    """Where to publish."""

    owner: str
    name: str
    description: str = ""
    private: bool = False
    branch: str = "main"

    @property
    def slug(self) -> str:
        return slugify(self.name)


@dataclass(frozen=True)
class RepositoryDescriptor:
    name: str
    full_name: str
    url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepositoryDescriptor":
        return cls(
            name=data.get("name", ""),
            full_name=data.get("full_name", ""),
            url=data.get("html_url") or data.get("url", ""),
        )


@dataclass(frozen=True)
class RepositoryRef:
    """Remote branch state read during a publish attempt."""

    owner: str
    slug: str
    branch_name: str
    head_sha: str


@dataclass(frozen=True)
class CommitResult:
    tree_sha: str
    commit_sha: str


@dataclass(frozen=True)
class PublishResult:
    repository: RepositoryDescriptor
    commit: CommitResult
    created: bool
    repo_url: str
    actions_url: str
