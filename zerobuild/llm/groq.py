"""Groq OpenAI-compatible chat completions adapter."""

from typing import Any

from zerobuild.errors import ErrorKind
from zerobuild.llm.base import BackendCall, HTTPBackendAdapter, ParsedReply
from zerobuild.models import GenerationParams


class GroqAdapter(HTTPBackendAdapter):
    display_name = "Groq"
    auth_invalid_hint = "Groq API key is invalid. Get a free key at console.groq.com"
    permission_denied_hint = "Your Groq key cannot use this model. Check the key at console.groq.com"
    truncation_reasons = frozenset({"length"})

    def build_request(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        credential: str,
        params: GenerationParams,
    ) -> BackendCall:
        # base_url is the full chat completions endpoint
        return BackendCall(
            url=self.base_url,
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type": "application/json",
            },
            json={
                "model": model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "max_tokens": params.max_output_tokens,
                "temperature": params.temperature,
            },
        )

    def parse_response(self, model: str, payload: Any) -> ParsedReply:
        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not choices:
            raise self.error(f"{model} returned no choices", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)

        choice = choices[0] if isinstance(choices, list) else None
        if not isinstance(choice, dict):
            raise self.error(f"{model} returned a malformed choice", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)

        finish_reason = choice.get("finish_reason")
        if finish_reason == "content_filter":
            raise self.error(
                "blocked this request (content_filter)",
                ErrorKind.CONTENT_BLOCKED,
                model=model,
                hint="Try rephrasing your app description.",
            )

        message = choice.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content:
            raise self.error(
                f"{model} returned no message content (finish reason {finish_reason})",
                ErrorKind.UNKNOWN_HTTP_ERROR,
                model=model,
            )
        return ParsedReply(text=content, finish_reason=finish_reason)
