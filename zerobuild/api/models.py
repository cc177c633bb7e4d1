"""Request and response models for the HTTP API."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from zerobuild.config import credentials_from_settings
from zerobuild.models import BackendCredentials, GeneratedApp, PublishResult, ValidationResult

BackendId = Literal["gemini", "groq", "huggingface"]


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("Value cannot be empty or whitespace only")
    return v


class ErrorDetail(BaseModel):
    """Error body for every pipeline failure."""

    detail: str = Field(description="Error message")
    kind: str = Field(description="Failure classification for programmatic handling")
    hint: str = Field(default="", description="What the user can do about it")


# Documented error bodies for routes that run a pipeline
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": ErrorDetail} for status in (400, 401, 403, 429, 502, 503)
}


class CredentialsPayload(BaseModel):
    """Per-request API keys. When all are empty the server's keys are used."""

    gemini_api_key: str = ""
    groq_api_key: str = ""
    huggingface_api_key: str = ""
    llm_api_key: str = ""

    def resolve(self) -> BackendCredentials:
        if any((self.gemini_api_key, self.groq_api_key, self.huggingface_api_key, self.llm_api_key)):
            return BackendCredentials(
                gemini_api_key=self.gemini_api_key.strip(),
                groq_api_key=self.groq_api_key.strip(),
                huggingface_api_key=self.huggingface_api_key.strip(),
                llm_api_key=self.llm_api_key.strip(),
            )
        return credentials_from_settings()


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=20000)
    enrichment: str | None = Field(default=None, max_length=20000)
    preferred_backend_id: BackendId | None = None
    credentials: CredentialsPayload = Field(default_factory=CredentialsPayload)

    @field_validator("prompt")
    @classmethod
    def prompt_not_empty(cls, v: str) -> str:
        """Validate prompt is not empty or whitespace only."""
        return _not_blank(v)


class ClarifyRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=20000)
    preferred_backend_id: BackendId | None = None
    credentials: CredentialsPayload = Field(default_factory=CredentialsPayload)

    @field_validator("prompt")
    @classmethod
    def prompt_not_empty(cls, v: str) -> str:
        return _not_blank(v)


class RefineRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=20000, description="The app's original idea")
    code: str = Field(min_length=1, max_length=500000, description="Current App.js")
    change_request: str = Field(min_length=1, max_length=20000)
    preferred_backend_id: BackendId | None = None
    credentials: CredentialsPayload = Field(default_factory=CredentialsPayload)

    @field_validator("prompt", "code", "change_request")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _not_blank(v)


class ValidateCodeRequest(BaseModel):
    code: str = ""


class PublishRequest(BaseModel):
    app_name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=350)
    code: str = Field(min_length=1, max_length=500000)
    private: bool = False
    # Fall back to ZEROBUILD_GITHUB_TOKEN / ZEROBUILD_GITHUB_USERNAME
    github_token: str = ""
    github_username: str = ""

    @field_validator("app_name", "code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _not_blank(v)


class ValidationResponse(BaseModel):
    valid: bool
    error: str | None = None
    line: int | None = None

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(valid=result.valid, error=result.error, line=result.line)


class GenerationResponse(BaseModel):
    """Generated (or refined) app code with repair diagnostics."""

    code: str = Field(description="Repaired App.js source")
    backend_id: str = Field(description="Backend that produced the code")
    model: str = Field(description="Model that produced the code")
    repair: dict[str, Any] = Field(description="What the repair pass changed")
    validation: ValidationResponse

    @classmethod
    def from_app(cls, app: GeneratedApp) -> "GenerationResponse":
        return cls(
            code=app.code,
            backend_id=app.result.origin_backend_id,
            model=app.result.model_used,
            repair=app.report.to_dict(),
            validation=ValidationResponse.from_result(app.validation),
        )


class QuestionModel(BaseModel):
    question: str
    options: list[str]


class ClarifyResponse(BaseModel):
    questions: list[QuestionModel]


class PublishResponse(BaseModel):
    repo_name: str
    full_name: str
    repo_url: str
    actions_url: str = Field(description="Where the build artifacts appear")
    commit_sha: str
    tree_sha: str
    created: bool = Field(description="Whether this publish created the repository")

    @classmethod
    def from_result(cls, result: PublishResult) -> "PublishResponse":
        return cls(
            repo_name=result.repository.name,
            full_name=result.repository.full_name,
            repo_url=result.repo_url,
            actions_url=result.actions_url,
            commit_sha=result.commit.commit_sha,
            tree_sha=result.commit.tree_sha,
            created=result.created,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status")
    version: str = Field(description="Application version")
    backends: list[str] = Field(description="Backends with a server-side key")
    github_configured: bool = Field(description="Whether a server-side GitHub token is set")
