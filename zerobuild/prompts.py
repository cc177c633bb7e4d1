import logging
from pathlib import Path
from typing import Any

import yaml

from zerobuild.models import GenerationRequest

logger = logging.getLogger(__name__)

# zerobuild/prompts.py -> zerobuild/data/prompts.yaml
PROMPTS_FILE = Path(__file__).parent / "data" / "prompts.yaml"

_prompts_cache: dict[str, Any] = {}


def load_prompts(force_reload: bool = False) -> dict[str, Any]:
    """Load prompts from YAML file."""
    global _prompts_cache
    if _prompts_cache and not force_reload:
        return _prompts_cache

    if not PROMPTS_FILE.exists():
        logger.error(f"Prompts file missing: {PROMPTS_FILE}")
        return {}

    with open(PROMPTS_FILE, "r", encoding="utf-8") as f:
        _prompts_cache = yaml.safe_load(f) or {}

    return _prompts_cache


def get_prompt(key: str, default: str = "") -> str:
    """Get a prompt by dot-notation key (e.g. 'system_prompts.generate')."""
    prompts = load_prompts()

    value: Any = prompts
    for k in key.split("."):
        if isinstance(value, dict):
            value = value.get(k)
        else:
            return default

    if value is None:
        return default

    # Replace {shared_X} by hand; the rest of the text may contain literal braces
    if isinstance(value, str) and "shared_" in value:
        injectables = prompts.get("render_hints", {}).get("injectables", {})
        for share_key, share_val in injectables.items():
            value = value.replace(f"{{{share_key}}}", str(share_val))

    return str(value)


def generation_prompts(request: GenerationRequest) -> tuple[str, str]:
    """System and user prompt for a fresh generation."""
    enrichment = ""
    if request.enrichment and request.enrichment.strip():
        enrichment = f"\nAdditional details from the user:\n{request.enrichment.strip()}\n"
    user = get_prompt("user_prompts.generate").format(
        prompt=request.prompt.strip(),
        enrichment=enrichment,
    )
    return get_prompt("system_prompts.generate"), user


def refinement_prompts(prompt: str, code: str, change_request: str) -> tuple[str, str]:
    """System and user prompt for changing existing code."""
    user = get_prompt("user_prompts.refine").format(
        prompt=prompt.strip(),
        code=code,
        change_request=change_request.strip(),
    )
    return get_prompt("system_prompts.refine"), user


def clarification_prompts(prompt: str) -> tuple[str, str]:
    """System and user prompt for clarifying questions."""
    user = get_prompt("user_prompts.clarify").format(prompt=prompt.strip())
    return get_prompt("system_prompts.clarify"), user
