"""Request-level generation: orchestrate, sanitize, repair, check."""

import logging
from functools import partial
from typing import Sequence

import httpx

from zerobuild.config import Settings, build_backend_descriptors, settings
from zerobuild.generation.clarify import ClarificationService
from zerobuild.generation.orchestrator import ProviderOrchestrator
from zerobuild.generation.repair import repair
from zerobuild.generation.sanitizer import sanitize
from zerobuild.generation.validator import check_code
from zerobuild.llm.base import BackendAdapter, SleepFunc
from zerobuild.llm.registry import build_adapters
from zerobuild.models import (
    BackendCredentials,
    ClarifyingQuestion,
    GeneratedApp,
    GenerationParams,
    GenerationRequest,
)
from zerobuild.prompts import refinement_prompts

logger = logging.getLogger(__name__)


def generation_params(config: Settings | None = None) -> GenerationParams:
    config = config or settings
    return GenerationParams(
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens,
        min_response_chars=config.min_response_chars,
    )


def adapters_for(
    credentials: BackendCredentials,
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> list[BackendAdapter]:
    """Fresh adapters for one request."""
    config = config or settings
    return build_adapters(
        build_backend_descriptors(credentials, config),
        config=config,
        transport=transport,
        sleep=sleep,
    )


async def _run(
    request: GenerationRequest,
    adapters: Sequence[BackendAdapter],
    config: Settings,
    prompts: tuple[str, str] | None = None,
) -> GeneratedApp:
    accept = partial(
        sanitize,
        min_chars=config.min_response_chars,
        min_lines=config.min_response_lines,
    )
    orchestrator = ProviderOrchestrator(generation_params(config))
    result = await orchestrator.generate(request, adapters, accept=accept, prompts=prompts)

    code, report = repair(result.text)
    validation = check_code(code)
    if not validation.valid:
        logger.warning(
            f"Generated code failed checks: {validation.error}",
            extra={"backend_id": result.origin_backend_id, "model": result.model_used},
        )
    return GeneratedApp(result=result, code=code, report=report, validation=validation)


async def generate_app(
    request: GenerationRequest,
    credentials: BackendCredentials,
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> GeneratedApp:
    """Generate, repair and check a new app.

    Raises:
        AggregateGenerationError: No credentials, or every backend failed
    """
    config = config or settings
    adapters = adapters_for(credentials, config, transport, sleep)
    return await _run(request, adapters, config)


async def refine_app(
    original_prompt: str,
    current_code: str,
    change_request: str,
    credentials: BackendCredentials,
    preferred_backend_id: str | None = None,
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> GeneratedApp:
    """Apply a change request to existing code."""
    config = config or settings
    request = GenerationRequest(prompt=original_prompt, preferred_backend_id=preferred_backend_id)
    adapters = adapters_for(credentials, config, transport, sleep)
    prompts = refinement_prompts(original_prompt, current_code, change_request)
    return await _run(request, adapters, config, prompts=prompts)


async def clarify_prompt(
    prompt: str,
    credentials: BackendCredentials,
    preferred_backend_id: str | None = None,
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> list[ClarifyingQuestion]:
    """Clarifying questions for a prompt; never raises."""
    config = config or settings
    params = GenerationParams(
        temperature=config.temperature,
        max_output_tokens=config.clarify_max_output_tokens,
        min_response_chars=20,
    )
    service = ClarificationService(params)
    adapters = adapters_for(credentials, config, transport, sleep)
    return await service.clarify(prompt, adapters, preferred_backend_id)
