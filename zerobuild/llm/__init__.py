"""Generation backend adapters."""

from zerobuild.llm.base import BackendAdapter, BackendReply, HTTPBackendAdapter
from zerobuild.llm.gemini import GeminiAdapter
from zerobuild.llm.groq import GroqAdapter
from zerobuild.llm.huggingface import HuggingFaceAdapter
from zerobuild.llm.registry import ADAPTER_CLASSES, build_adapters

__all__ = [
    "ADAPTER_CLASSES",
    "BackendAdapter",
    "BackendReply",
    "GeminiAdapter",
    "GroqAdapter",
    "HTTPBackendAdapter",
    "HuggingFaceAdapter",
    "build_adapters",
]
