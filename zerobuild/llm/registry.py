"""Construct backend adapters from configuration."""

import logging

import httpx

from zerobuild.config import Settings, settings
from zerobuild.llm.base import BackendAdapter, HTTPBackendAdapter, SleepFunc
from zerobuild.llm.gemini import GeminiAdapter
from zerobuild.llm.groq import GroqAdapter
from zerobuild.llm.huggingface import HuggingFaceAdapter
from zerobuild.models import BackendDescriptor

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: dict[str, type[HTTPBackendAdapter]] = {
    "gemini": GeminiAdapter,
    "groq": GroqAdapter,
    "huggingface": HuggingFaceAdapter,
}


def _base_url(backend_id: str, config: Settings) -> str:
    return {
        "gemini": config.gemini_base_url,
        "groq": config.groq_api_url,
        "huggingface": config.huggingface_base_url,
    }[backend_id]


def build_adapters(
    descriptors: list[BackendDescriptor],
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> list[BackendAdapter]:
    """One adapter per descriptor, preserving configuration order."""
    config = config or settings
    adapters: list[BackendAdapter] = []

    for descriptor in descriptors:
        adapter_cls = ADAPTER_CLASSES.get(descriptor.id)
        if adapter_cls is None:
            logger.warning(f"Skipping unknown backend: {descriptor.id}")
            continue

        kwargs = {}
        if adapter_cls is HuggingFaceAdapter:
            kwargs["max_new_tokens"] = config.huggingface_max_new_tokens

        adapters.append(adapter_cls(
            descriptor,
            base_url=_base_url(descriptor.id, config),
            max_attempts=config.max_attempts_per_model,
            timeout=config.llm_timeout,
            transport=transport,
            sleep=sleep,
            **kwargs,
        ))

    return adapters
