"""Google Gemini generateContent adapter."""

from typing import Any

from zerobuild.errors import ErrorKind
from zerobuild.llm.base import BackendCall, HTTPBackendAdapter, ParsedReply
from zerobuild.models import GenerationParams


class GeminiAdapter(HTTPBackendAdapter):
    display_name = "Gemini"
    auth_invalid_hint = "Gemini API key is invalid. Please get a new key from ai.google.dev"
    permission_denied_hint = "Gemini API key is invalid or doesn't have access. Check your key in Settings."
    truncation_reasons = frozenset({"MAX_TOKENS"})

    def build_request(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        credential: str,
        params: GenerationParams,
    ) -> BackendCall:
        return BackendCall(
            url=f"{self.base_url}/{model}:generateContent",
            params={"key": credential},
            headers={"Content-Type": "application/json"},
            json={
                "system_instruction": {"parts": [{"text": system_prompt}]},
                "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
                "generationConfig": {
                    "temperature": params.temperature,
                    "maxOutputTokens": params.max_output_tokens,
                },
            },
        )

    def parse_response(self, model: str, payload: Any) -> ParsedReply:
        if not isinstance(payload, dict):
            raise self.error(f"{model} returned an unexpected payload", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)

        if payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise self.error(f"error: {message}", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)

        candidates = payload.get("candidates") or []
        if not candidates:
            feedback = payload.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            if block_reason:
                raise self.error(
                    f"blocked this request ({block_reason})",
                    ErrorKind.CONTENT_BLOCKED,
                    model=model,
                    hint="Try rephrasing your app description.",
                )
            raise self.error(f"{model} returned no candidates", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)

        candidate = candidates[0] if isinstance(candidates, list) else None
        if not isinstance(candidate, dict):
            raise self.error(f"{model} returned a malformed candidate", ErrorKind.UNKNOWN_HTTP_ERROR, model=model)

        finish_reason = candidate.get("finishReason")
        if finish_reason == "SAFETY":
            raise self.error(
                "blocked this for safety reasons",
                ErrorKind.CONTENT_BLOCKED,
                model=model,
                hint="Try rephrasing your app idea.",
            )

        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            parts = []
        text = "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))
        if not text:
            raise self.error(
                f"{model} returned no text (finish reason {finish_reason})",
                ErrorKind.UNKNOWN_HTTP_ERROR,
                model=model,
            )
        return ParsedReply(text=text, finish_reason=finish_reason)
