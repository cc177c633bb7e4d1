"""Generation pipeline: orchestration, sanitizing, repair and checks."""

from zerobuild.generation.clarify import ClarificationService, build_enrichment
from zerobuild.generation.orchestrator import ProviderOrchestrator
from zerobuild.generation.repair import repair
from zerobuild.generation.sanitizer import sanitize
from zerobuild.generation.service import clarify_prompt, generate_app, refine_app
from zerobuild.generation.validator import check_code

__all__ = [
    "ClarificationService",
    "ProviderOrchestrator",
    "build_enrichment",
    "check_code",
    "clarify_prompt",
    "generate_app",
    "refine_app",
    "repair",
    "sanitize",
]
