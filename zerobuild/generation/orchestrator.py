"""Sequential provider orchestration with first-success short-circuit."""

import logging
from typing import Callable, Sequence

from zerobuild.errors import (
    AggregateGenerationError,
    ErrorKind,
    GenerationError,
    InsufficientOutputError,
    most_actionable,
)
from zerobuild.llm.base import BackendAdapter
from zerobuild.models import GenerationParams, GenerationRequest, GenerationResult
from zerobuild.prompts import generation_prompts

logger = logging.getLogger(__name__)

AcceptFunc = Callable[[str], str]

NO_CREDENTIALS_MESSAGE = (
    "No AI API keys configured. Go to Settings and add at least one API key "
    "(Gemini, Groq, or HuggingFace). All are free!"
)

AGGREGATE_MESSAGES: dict[ErrorKind, tuple[str, str]] = {
    ErrorKind.AUTH_INVALID: (
        "Your AI API key appears to be invalid or expired.",
        "Go to Settings and check your API key. Make sure you copied the full key.",
    ),
    ErrorKind.PERMISSION_DENIED: (
        "Your AI API key does not have permission to use the generation models.",
        "Go to Settings and check that the key has access to the models, or use a key from another provider.",
    ),
    ErrorKind.TRANSIENT_RATE_LIMIT: (
        "AI rate limit reached.",
        "1. Wait 1-2 minutes and try again\n"
        "2. Add another free AI key in Settings (Groq is fastest)\n"
        "3. If using Gemini, the free tier allows ~10 requests/minute",
    ),
}


def order_adapters(
    adapters: Sequence[BackendAdapter],
    preferred_backend_id: str | None = None,
) -> list[BackendAdapter]:
    """Credentialed first, then the preferred backend, then configuration order."""
    indexed = list(enumerate(adapters))
    indexed.sort(key=lambda item: (
        not item[1].has_credential,
        item[1].id != preferred_backend_id,
        item[0],
    ))
    return [adapter for _, adapter in indexed]


def aggregate_failures(failures: list[GenerationError]) -> AggregateGenerationError:
    """Synthesize one user-facing error from every backend's failure."""
    best = most_actionable(failures)
    kind = best.kind if best else ErrorKind.UNKNOWN_HTTP_ERROR

    if kind in AGGREGATE_MESSAGES:
        message, hint = AGGREGATE_MESSAGES[kind]
        return AggregateGenerationError(message, kind, hint=hint, failures=failures)

    details = "\n".join(f"- {failure.message}" for failure in failures)
    return AggregateGenerationError(
        f"Code generation failed. Details:\n{details}",
        kind,
        hint="Try again, or add another AI provider key in Settings.",
        failures=failures,
    )


class ProviderOrchestrator:
    """Try adapters one at a time and keep the first accepted result."""

    def __init__(self, params: GenerationParams | None = None) -> None:
        self.params = params or GenerationParams()

    async def generate(
        self,
        request: GenerationRequest,
        adapters: Sequence[BackendAdapter],
        accept: AcceptFunc | None = None,
        prompts: tuple[str, str] | None = None,
    ) -> GenerationResult:
        """Return the first accepted generation.

        Args:
            request: The user's request; its preferred backend is tried first
                among credentialed ones
            adapters: Configured adapters in configuration order
            accept: Optional post-processing (the sanitizer); raising
                InsufficientOutputError rejects the backend's output
            prompts: (system, user) prompts; built from the request when omitted

        Raises:
            AggregateGenerationError: No credentials, or every backend failed
        """
        system_prompt, user_prompt = prompts or generation_prompts(request)
        ordered = [
            a for a in order_adapters(adapters, request.preferred_backend_id) if a.has_credential
        ]
        if not ordered:
            raise AggregateGenerationError(
                NO_CREDENTIALS_MESSAGE,
                ErrorKind.NO_CREDENTIALS,
                hint="Add a Gemini, Groq or HuggingFace API key in Settings.",
            )

        failures: list[GenerationError] = []
        for adapter in ordered:
            try:
                reply = await adapter.invoke(
                    system_prompt,
                    user_prompt,
                    adapter.descriptor.credential,
                    self.params,
                )
            except GenerationError as e:
                logger.warning(f"{adapter.id} failed: {e.message}", extra={"backend_id": adapter.id})
                failures.append(e)
                continue

            text = reply.text
            if accept is not None:
                try:
                    text = accept(text)
                except InsufficientOutputError as e:
                    logger.warning(
                        f"{adapter.id} output rejected: {e.message}",
                        extra={"backend_id": adapter.id, "model": reply.model},
                    )
                    failures.append(GenerationError(
                        f"{adapter.id}: returned insufficient code ({e.message})",
                        ErrorKind.VALIDATION_FAILURE,
                        hint=e.hint,
                        backend_id=adapter.id,
                        model=reply.model,
                    ))
                    continue

            logger.info(
                "Generation accepted",
                extra={"backend_id": adapter.id, "model": reply.model},
            )
            return GenerationResult(text=text, origin_backend_id=adapter.id, model_used=reply.model)

        raise aggregate_failures(failures)
