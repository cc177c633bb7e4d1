"""Tests for provider ordering, short-circuit and failure aggregation."""

import httpx
import pytest

from tests.conftest import SAMPLE_APP, FakeAdapter, failing, json_response
from zerobuild.config import Settings
from zerobuild.errors import AggregateGenerationError, ErrorKind, InsufficientOutputError
from zerobuild.generation.orchestrator import ProviderOrchestrator, order_adapters
from zerobuild.generation.service import generate_app
from zerobuild.models import BackendCredentials, GenerationRequest


def request(preferred: str | None = None) -> GenerationRequest:
    return GenerationRequest(prompt="a todo list app", preferred_backend_id=preferred)


class TestOrdering:
    def test_credentialed_first_then_preferred_then_config_order(self):
        adapters = [
            FakeAdapter("gemini", credential=""),
            FakeAdapter("groq"),
            FakeAdapter("huggingface"),
        ]

        ordered = order_adapters(adapters, "huggingface")

        assert [a.id for a in ordered] == ["huggingface", "groq", "gemini"]

    def test_configuration_order_without_preference(self):
        adapters = [FakeAdapter("gemini"), FakeAdapter("groq"), FakeAdapter("huggingface")]
        assert [a.id for a in order_adapters(adapters)] == ["gemini", "groq", "huggingface"]

    def test_preferred_without_credential_stays_last(self):
        adapters = [FakeAdapter("gemini", credential=""), FakeAdapter("groq")]
        assert [a.id for a in order_adapters(adapters, "gemini")] == ["groq", "gemini"]


class TestProviderOrchestrator:
    @pytest.mark.asyncio
    async def test_short_circuits_on_first_success(self):
        first = FakeAdapter("gemini", failing("gemini", ErrorKind.UNKNOWN_HTTP_ERROR))
        second = FakeAdapter("groq", SAMPLE_APP, model="llama")
        third = FakeAdapter("huggingface", SAMPLE_APP)

        result = await ProviderOrchestrator().generate(request(), [first, second, third])

        assert result.origin_backend_id == "groq"
        assert result.model_used == "llama"
        assert result.text == SAMPLE_APP
        assert len(first.calls) == 1
        assert third.calls == []

    @pytest.mark.asyncio
    async def test_preferred_backend_invoked_first(self):
        gemini = FakeAdapter("gemini", SAMPLE_APP)
        groq = FakeAdapter("groq", SAMPLE_APP)

        result = await ProviderOrchestrator().generate(request("groq"), [gemini, groq])

        assert result.origin_backend_id == "groq"
        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_adapters_without_credentials_never_invoked(self):
        gemini = FakeAdapter("gemini", SAMPLE_APP, credential="")
        groq = FakeAdapter("groq", failing("groq", ErrorKind.UNKNOWN_HTTP_ERROR))

        with pytest.raises(AggregateGenerationError):
            await ProviderOrchestrator().generate(request(), [gemini, groq])

        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_no_credentials(self):
        adapters = [FakeAdapter("gemini", credential=""), FakeAdapter("groq", credential="")]

        with pytest.raises(AggregateGenerationError) as exc_info:
            await ProviderOrchestrator().generate(request(), adapters)

        assert exc_info.value.kind == ErrorKind.NO_CREDENTIALS
        assert "API key" in exc_info.value.message
        assert exc_info.value.hint

    @pytest.mark.asyncio
    async def test_auth_failure_does_not_stop_orchestration(self):
        gemini = FakeAdapter("gemini", failing("gemini", ErrorKind.AUTH_INVALID))
        groq = FakeAdapter("groq", SAMPLE_APP)

        result = await ProviderOrchestrator().generate(request(), [gemini, groq])

        assert result.origin_backend_id == "groq"

    @pytest.mark.asyncio
    async def test_auth_wins_over_rate_limit(self):
        adapters = [
            FakeAdapter("gemini", failing("gemini", ErrorKind.TRANSIENT_RATE_LIMIT)),
            FakeAdapter("groq", failing("groq", ErrorKind.AUTH_INVALID)),
            FakeAdapter("huggingface", failing("huggingface", ErrorKind.UNKNOWN_HTTP_ERROR)),
        ]

        with pytest.raises(AggregateGenerationError) as exc_info:
            await ProviderOrchestrator().generate(request(), adapters)

        error = exc_info.value
        assert error.kind == ErrorKind.AUTH_INVALID
        assert "invalid or expired" in error.message
        assert len(error.failures) == 3

    @pytest.mark.asyncio
    async def test_permission_wins_over_rate_limit(self):
        adapters = [
            FakeAdapter("gemini", failing("gemini", ErrorKind.TRANSIENT_RATE_LIMIT)),
            FakeAdapter("groq", failing("groq", ErrorKind.PERMISSION_DENIED)),
        ]

        with pytest.raises(AggregateGenerationError) as exc_info:
            await ProviderOrchestrator().generate(request(), adapters)

        assert exc_info.value.kind == ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_rate_limit_wins_over_generic(self):
        adapters = [
            FakeAdapter("gemini", failing("gemini", ErrorKind.UNKNOWN_HTTP_ERROR)),
            FakeAdapter("groq", failing("groq", ErrorKind.TRANSIENT_RATE_LIMIT)),
        ]

        with pytest.raises(AggregateGenerationError) as exc_info:
            await ProviderOrchestrator().generate(request(), adapters)

        assert exc_info.value.kind == ErrorKind.TRANSIENT_RATE_LIMIT
        assert "rate limit" in exc_info.value.message.lower()

    @pytest.mark.asyncio
    async def test_all_validation_failures_give_generic_message(self):
        adapters = [
            FakeAdapter(backend_id, failing(backend_id, ErrorKind.VALIDATION_FAILURE, "returned too little code"))
            for backend_id in ("gemini", "groq", "huggingface")
        ]

        with pytest.raises(AggregateGenerationError) as exc_info:
            await ProviderOrchestrator().generate(request(), adapters)

        error = exc_info.value
        assert error.kind == ErrorKind.VALIDATION_FAILURE
        assert error.message.startswith("Code generation failed. Details:")
        for backend_id in ("gemini", "groq", "huggingface"):
            assert f"- {backend_id}: returned too little code" in error.message
        assert "rate limit" not in error.message.lower()
        assert "api key" not in error.message.lower()
        assert error.hint

    @pytest.mark.asyncio
    async def test_rejected_output_tries_next_backend(self):
        def accept(text: str) -> str:
            if text == "junk":
                raise InsufficientOutputError("only 4 chars of code")
            return text.upper()

        gemini = FakeAdapter("gemini", "junk")
        groq = FakeAdapter("groq", "good code")

        result = await ProviderOrchestrator().generate(request(), [gemini, groq], accept=accept)

        assert result.origin_backend_id == "groq"
        assert result.text == "GOOD CODE"

    @pytest.mark.asyncio
    async def test_rejected_output_is_validation_failure(self):
        def accept(text: str) -> str:
            raise InsufficientOutputError("only 4 chars of code")

        with pytest.raises(AggregateGenerationError) as exc_info:
            await ProviderOrchestrator().generate(request(), [FakeAdapter("gemini", "junk")], accept=accept)

        assert exc_info.value.kind == ErrorKind.VALIDATION_FAILURE
        assert exc_info.value.failures[0].backend_id == "gemini"

    @pytest.mark.asyncio
    async def test_explicit_prompts_are_sent(self):
        adapter = FakeAdapter("gemini", SAMPLE_APP)

        await ProviderOrchestrator().generate(request(), [adapter], prompts=("SYS", "USR"))

        assert adapter.calls == [("SYS", "USR")]

    @pytest.mark.asyncio
    async def test_default_prompts_include_enrichment(self):
        adapter = FakeAdapter("gemini", SAMPLE_APP)
        enriched = GenerationRequest(prompt="a recipe app", enrichment="- Who is it for? Me")

        await ProviderOrchestrator().generate(enriched, [adapter])

        _, user_prompt = adapter.calls[0]
        assert "a recipe app" in user_prompt
        assert "Who is it for? Me" in user_prompt


class TestMalformedBackendPayload:
    @pytest.mark.asyncio
    async def test_generate_falls_through_to_next_backend(self, no_sleep):
        def handler(request):
            if request.url.host == "generativelanguage.googleapis.com":
                return json_response(200, {"candidates": ["oops"]})
            return json_response(200, {
                "choices": [{"message": {"content": SAMPLE_APP}, "finish_reason": "stop"}]
            })

        app = await generate_app(
            GenerationRequest(prompt="a tap counter"),
            BackendCredentials(gemini_api_key="g", groq_api_key="q"),
            config=Settings(),
            transport=httpx.MockTransport(handler),
            sleep=no_sleep,
        )

        assert app.result.origin_backend_id == "groq"
        assert app.validation.valid
