"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from zerobuild.models import BackendCredentials


class TestConfigValidation:
    """Tests for Settings validation."""

    def test_endpoint_url_valid_https(self):
        """Test valid HTTPS endpoint URL is accepted."""
        from zerobuild.config import Settings
        s = Settings(github_api_url="https://github.example.com/api/v3")
        assert s.github_api_url == "https://github.example.com/api/v3"

    def test_endpoint_url_invalid_rejected(self):
        """Test endpoint URL without a scheme is rejected."""
        from zerobuild.config import Settings
        with pytest.raises(ValidationError) as exc_info:
            Settings(groq_api_url="api.groq.com/openai/v1/chat/completions")
        assert "http" in str(exc_info.value).lower()

    def test_endpoint_url_trailing_slash_removed(self):
        """Test trailing slash is removed from endpoint URLs."""
        from zerobuild.config import Settings
        s = Settings(gemini_base_url="https://generativelanguage.googleapis.com/v1beta/models/")
        assert s.gemini_base_url == "https://generativelanguage.googleapis.com/v1beta/models"

    def test_rate_limit_validation_valid(self):
        """Test valid rate limit format."""
        from zerobuild.config import Settings
        s = Settings(rate_limit_generate="5/minute", rate_limit_default="100/minute")
        assert s.rate_limit_generate == "5/minute"

    def test_rate_limit_validation_invalid(self):
        """Test invalid rate limit format is rejected."""
        from zerobuild.config import Settings
        with pytest.raises(ValidationError) as exc_info:
            Settings(rate_limit_generate="5perminute")
        assert "format" in str(exc_info.value).lower() or "/" in str(exc_info.value)

    def test_llm_provider_must_be_known(self):
        from zerobuild.config import Settings
        with pytest.raises(ValidationError):
            Settings(llm_provider="openai")

    def test_attempts_must_be_positive(self):
        from zerobuild.config import Settings
        with pytest.raises(ValidationError):
            Settings(max_attempts_per_model=0)

    def test_env_prefix(self, monkeypatch):
        """Test settings are read from ZEROBUILD_ variables."""
        from zerobuild.config import Settings
        monkeypatch.setenv("ZEROBUILD_GROQ_API_KEY", "gsk-env")
        monkeypatch.setenv("ZEROBUILD_REPO_READY_ATTEMPTS", "5")
        s = Settings()
        assert s.groq_api_key == "gsk-env"
        assert s.repo_ready_attempts == 5


class TestBackendDescriptors:
    """Tests for building backend descriptors from credentials."""

    def test_configuration_order(self):
        from zerobuild.config import Settings, build_backend_descriptors
        descriptors = build_backend_descriptors(BackendCredentials(groq_api_key="g"), Settings())
        assert [d.id for d in descriptors] == ["gemini", "groq", "huggingface"]
        assert [d.credential for d in descriptors] == ["", "g", ""]

    def test_models_come_from_settings(self):
        from zerobuild.config import Settings, build_backend_descriptors
        config = Settings(groq_models=["llama-a", "llama-b"])
        groq = build_backend_descriptors(BackendCredentials(), config)[1]
        assert groq.model_fallback_list == ("llama-a", "llama-b")

    def test_rate_limit_policy_from_settings(self):
        from zerobuild.config import Settings, build_backend_descriptors
        config = Settings(rate_limit_base_delay=1.0, rate_limit_max_delay=3.0)
        policy = build_backend_descriptors(BackendCredentials(), config)[0].rate_limit_policy
        assert policy.base_delay_seconds == 1.0
        assert policy.max_delay_seconds == 3.0

    def test_legacy_key_used_for_gemini_only_without_other_keys(self):
        from zerobuild.config import Settings, build_backend_descriptors
        config = Settings()
        alone = build_backend_descriptors(BackendCredentials(llm_api_key="legacy"), config)
        assert alone[0].credential == "legacy"

        mixed = build_backend_descriptors(
            BackendCredentials(llm_api_key="legacy", groq_api_key="g"), config
        )
        assert mixed[0].credential == ""

    def test_explicit_gemini_key_wins_over_legacy(self):
        from zerobuild.config import Settings, build_backend_descriptors
        descriptors = build_backend_descriptors(
            BackendCredentials(gemini_api_key="new", llm_api_key="legacy"), Settings()
        )
        assert descriptors[0].credential == "new"


class TestConfigHelpers:
    """Tests for config helper functions."""

    def test_get_config_dict_keys(self):
        """Test get_config_dict returns expected keys."""
        from zerobuild.config import get_config_dict
        config = get_config_dict()
        assert "app_name" in config
        assert "debug" in config
        assert "backends" in config
        assert "github_configured" in config

    def test_get_config_dict_has_no_secrets(self):
        from zerobuild.config import get_config_dict
        config = get_config_dict()
        for secret in ("gemini_api_key", "groq_api_key", "huggingface_api_key", "llm_api_key", "github_token"):
            assert secret not in config
