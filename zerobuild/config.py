"""Configuration management for ZeroBuild."""

import logging
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zerobuild.models import BackendCredentials, BackendDescriptor
from zerobuild.resilience.retry import RateLimitPolicy

logger = logging.getLogger(__name__)

# Configuration order; also the orchestrator's tie-break order
BACKEND_IDS = ("gemini", "groq", "huggingface")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="ZEROBUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "ZeroBuild"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # LLM credentials
    llm_provider: Literal["gemini", "groq", "huggingface"] = "gemini"
    gemini_api_key: str = ""
    groq_api_key: str = ""
    huggingface_api_key: str = ""
    llm_api_key: str = ""  # Legacy single key, treated as a Gemini key

    # LLM endpoints and models
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    huggingface_base_url: str = "https://router.huggingface.co/hf-inference/models"
    gemini_models: list[str] = Field(
        default_factory=lambda: ["gemini-2.5-flash", "gemini-2.5-flash-lite"]
    )
    groq_models: list[str] = Field(
        default_factory=lambda: [
            "llama-3.3-70b-versatile",
            "llama-3.1-70b-versatile",
            "mixtral-8x7b-32768",
        ]
    )
    huggingface_models: list[str] = Field(
        default_factory=lambda: ["mistralai/Mistral-7B-Instruct-v0.3"]
    )

    # Generation
    temperature: float = 0.7
    max_output_tokens: int = 8192
    huggingface_max_new_tokens: int = 4096
    clarify_max_output_tokens: int = 1024
    min_response_chars: int = 100
    min_response_lines: int = 5

    # Retry (seconds)
    max_attempts_per_model: int = 3
    rate_limit_base_delay: float = 5.0
    rate_limit_max_delay: float = 15.0
    repo_ready_attempts: int = 3
    repo_ready_delay: float = 2.0

    # Timeouts (seconds)
    llm_timeout: int = 120  # 2 minutes for generation calls
    http_timeout: int = 30  # 30 seconds for GitHub calls

    # GitHub
    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    github_username: str = ""
    github_default_branch: str = "main"
    github_commit_message: str = "Add generated app code via ZeroBuild AI"

    # API rate limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"
    rate_limit_generate: str = "10/minute"  # Generate and refine endpoints

    @field_validator("gemini_base_url", "groq_api_url", "huggingface_base_url", "github_api_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate endpoint URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("rate_limit_default", "rate_limit_generate")
    @classmethod
    def validate_rate_limit(cls, v: str) -> str:
        """Validate rate limit format (e.g., '20/minute')."""
        if "/" not in v:
            raise ValueError("Rate limit must be in format 'N/period' (e.g., '20/minute')")
        return v

    @field_validator("max_attempts_per_model", "repo_ready_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Attempt counts must be at least 1")
        return v


settings = Settings()


def get_config_dict() -> dict[str, Any]:
    """Get non-secret config as dict for API responses."""
    return {
        "app_name": settings.app_name,
        "debug": settings.debug,
        "llm_provider": settings.llm_provider,
        "max_output_tokens": settings.max_output_tokens,
        "backends": [
            backend_id
            for backend_id in BACKEND_IDS
            if getattr(settings, f"{backend_id}_api_key")
        ],
        "github_configured": bool(settings.github_token and settings.github_username),
    }


def credentials_from_settings(config: Settings | None = None) -> BackendCredentials:
    """Backend credentials configured through the environment."""
    config = config or settings
    return BackendCredentials(
        gemini_api_key=config.gemini_api_key,
        groq_api_key=config.groq_api_key,
        huggingface_api_key=config.huggingface_api_key,
        llm_api_key=config.llm_api_key,
    )


def build_backend_descriptors(
    credentials: BackendCredentials,
    config: Settings | None = None,
) -> list[BackendDescriptor]:
    """Describe every backend in configuration order.

    Backends without a key are still described (with an empty credential) so
    callers can report what is missing.
    """
    config = config or settings
    policy = RateLimitPolicy(
        base_delay_seconds=config.rate_limit_base_delay,
        max_delay_seconds=config.rate_limit_max_delay,
    )

    gemini_key = credentials.gemini_api_key
    if not gemini_key and not credentials.groq_api_key and not credentials.huggingface_api_key:
        gemini_key = credentials.llm_api_key

    keys = {
        "gemini": gemini_key,
        "groq": credentials.groq_api_key,
        "huggingface": credentials.huggingface_api_key,
    }
    models = {
        "gemini": config.gemini_models,
        "groq": config.groq_models,
        "huggingface": config.huggingface_models,
    }

    return [
        BackendDescriptor(
            id=backend_id,
            credential=keys[backend_id],
            model_fallback_list=tuple(models[backend_id]),
            rate_limit_policy=policy,
        )
        for backend_id in BACKEND_IDS
    ]


def validate_critical_settings() -> None:
    """Validate critical settings and log warnings for potential issues."""
    credentials = credentials_from_settings()
    if not any(d.credential for d in build_backend_descriptors(credentials)):
        logger.warning(
            "No generation API key configured (ZEROBUILD_GEMINI_API_KEY, "
            "ZEROBUILD_GROQ_API_KEY or ZEROBUILD_HUGGINGFACE_API_KEY) - requests "
            "must supply their own credentials."
        )

    if settings.github_token and not settings.github_username:
        logger.warning(
            "ZEROBUILD_GITHUB_TOKEN is set without ZEROBUILD_GITHUB_USERNAME - "
            "publishing needs both."
        )

    # Warn about debug mode in production-like settings
    if settings.debug and settings.host == "0.0.0.0":
        logger.warning(
            "Running in debug mode with public host binding (0.0.0.0). "
            "Disable debug mode for production deployments."
        )


validate_critical_settings()
