"""Generation API endpoints."""

import logging

from fastapi import APIRouter, Request

from zerobuild.api.limiter import limiter
from zerobuild.api.models import (
    ERROR_RESPONSES,
    ClarifyRequest,
    ClarifyResponse,
    GenerateRequest,
    GenerationResponse,
    QuestionModel,
    RefineRequest,
    ValidateCodeRequest,
    ValidationResponse,
)
from zerobuild.config import settings
from zerobuild.generation.service import clarify_prompt, generate_app, refine_app
from zerobuild.generation.validator import check_code
from zerobuild.models import GenerationRequest

logger = logging.getLogger(__name__)

router = APIRouter(responses=ERROR_RESPONSES)


@router.post("/generate", response_model=GenerationResponse)
@limiter.limit(settings.rate_limit_generate)
async def generate(request: Request, generate_request: GenerateRequest) -> GenerationResponse:
    """Generate a new app from a prompt.

    Backends are tried one at a time; the first usable code is repaired and
    checked. Check failures are reported in `validation`, not as an error.
    """
    app = await generate_app(
        GenerationRequest(
            prompt=generate_request.prompt,
            enrichment=generate_request.enrichment,
            preferred_backend_id=generate_request.preferred_backend_id or settings.llm_provider,
        ),
        generate_request.credentials.resolve(),
    )
    return GenerationResponse.from_app(app)


@router.post("/refine", response_model=GenerationResponse)
@limiter.limit(settings.rate_limit_generate)
async def refine(request: Request, refine_request: RefineRequest) -> GenerationResponse:
    """Apply a change request to existing app code."""
    app = await refine_app(
        refine_request.prompt,
        refine_request.code,
        refine_request.change_request,
        refine_request.credentials.resolve(),
        preferred_backend_id=refine_request.preferred_backend_id or settings.llm_provider,
    )
    return GenerationResponse.from_app(app)


@router.post("/clarify", response_model=ClarifyResponse)
async def clarify(clarify_request: ClarifyRequest) -> ClarifyResponse:
    """Clarifying questions for a prompt. Falls back to default questions."""
    questions = await clarify_prompt(
        clarify_request.prompt,
        clarify_request.credentials.resolve(),
        preferred_backend_id=clarify_request.preferred_backend_id or settings.llm_provider,
    )
    return ClarifyResponse(
        questions=[QuestionModel(question=q.question, options=list(q.options)) for q in questions]
    )


@router.post("/validate-code", response_model=ValidationResponse)
async def validate_code(validate_request: ValidateCodeRequest) -> ValidationResponse:
    """Run the semantic checks on a piece of code."""
    return ValidationResponse.from_result(check_code(validate_request.code))
