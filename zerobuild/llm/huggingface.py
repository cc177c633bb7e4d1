"""HuggingFace inference adapter (instruction-tuned text generation)."""

from typing import Any

from zerobuild.errors import ErrorKind
from zerobuild.llm.base import BackendCall, HTTPBackendAdapter, ParsedReply
from zerobuild.models import GenerationParams


class HuggingFaceAdapter(HTTPBackendAdapter):
    display_name = "HuggingFace"
    auth_invalid_hint = "HuggingFace API key is invalid. Get a free key at huggingface.co/settings/tokens"
    permission_denied_hint = (
        "Your HuggingFace token cannot call inference. Enable inference permissions "
        "at huggingface.co/settings/tokens"
    )
    unavailable_statuses = frozenset({404, 410, 503})

    def __init__(self, *args: Any, max_new_tokens: int = 4096, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.max_new_tokens = max_new_tokens

    def build_request(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        credential: str,
        params: GenerationParams,
    ) -> BackendCall:
        return BackendCall(
            url=f"{self.base_url}/{model}",
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type": "application/json",
            },
            json={
                "inputs": f"<s>[INST] {system_prompt}\n\n{user_prompt} [/INST]",
                "parameters": {
                    "max_new_tokens": min(params.max_output_tokens, self.max_new_tokens),
                    "temperature": params.temperature,
                    "return_full_text": False,
                },
            },
        )

    def parse_response(self, model: str, payload: Any) -> ParsedReply:
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            text = payload[0].get("generated_text")
            if isinstance(text, str) and text:
                return ParsedReply(text=text)
        if isinstance(payload, dict) and payload.get("error"):
            raise self.error(f"error: {payload['error']}", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)
        raise self.error("unexpected response format", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)
