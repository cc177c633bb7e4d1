"""Backend adapter interface and the shared HTTP retry/fallback loop.

Every generation backend is reached through a `BackendAdapter`. The
orchestrator only sees `id`, `has_credential` and `invoke`; concrete HTTP
adapters only describe how to build a request and where the text lives in
the response. Model fallback, 429 backoff and status classification live in
`HTTPBackendAdapter.invoke` so all backends behave the same way.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx

from zerobuild.errors import ErrorKind, GenerationError, most_actionable
from zerobuild.models import BackendDescriptor, GenerationParams
from zerobuild.resilience.retry import RetryPolicy, parse_retry_hint

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BackendReply:
    """Accepted text from one backend call."""

    text: str
    model: str
    truncated: bool = False


@dataclass(frozen=True)
class BackendCall:
    """One HTTP request to a backend."""

    url: str
    json: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedReply:
    text: str
    finish_reason: str | None = None


class BackendAdapter(ABC):
    """Capability interface the orchestrator depends on."""

    def __init__(self, descriptor: BackendDescriptor) -> None:
        self.descriptor = descriptor

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def has_credential(self) -> bool:
        return bool(self.descriptor.credential)

    @abstractmethod
    async def invoke(
        self,
        system_prompt: str,
        user_prompt: str,
        credential: str | None = None,
        params: GenerationParams | None = None,
    ) -> BackendReply:
        """Generate text or raise GenerationError with a terminal classification."""


class HTTPBackendAdapter(BackendAdapter):
    """Base for JSON-over-HTTP backends with model fallback and 429 backoff."""

    display_name = "Backend"
    auth_invalid_hint = "Check your API key in Settings."
    permission_denied_hint = "Check that your API key has access to this model."
    truncation_reasons: frozenset[str] = frozenset()
    # Statuses that mean "this model is not usable right now"
    unavailable_statuses: frozenset[int] = frozenset()

    def __init__(
        self,
        descriptor: BackendDescriptor,
        base_url: str,
        max_attempts: int = 3,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        super().__init__(descriptor)
        self.base_url = base_url.rstrip("/")
        self.policy: RetryPolicy = descriptor.rate_limit_policy.to_retry_policy(max_attempts)
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep or asyncio.sleep

    @abstractmethod
    def build_request(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        credential: str,
        params: GenerationParams,
    ) -> BackendCall:
        """Describe the HTTP request for one model."""

    @abstractmethod
    def parse_response(self, model: str, payload: Any) -> ParsedReply:
        """Extract the generated text.

        Raises GenerationError: CONTENT_BLOCKED stops this backend, any other
        kind moves on to the next model.
        """

    def error(
        self,
        message: str,
        kind: ErrorKind,
        model: str | None = None,
        status_code: int | None = None,
        hint: str = "",
    ) -> GenerationError:
        return GenerationError(
            f"{self.display_name}: {message}",
            kind,
            hint=hint,
            backend_id=self.id,
            model=model,
            status_code=status_code,
        )

    def _auth_failure(self, status: int, model: str, response: httpx.Response) -> GenerationError:
        if status == 401:
            return self.error(
                "API key is invalid",
                ErrorKind.AUTH_INVALID,
                model=model,
                status_code=status,
                hint=self.auth_invalid_hint,
            )
        return self.error(
            f"API key does not have access ({_error_message(response)})",
            ErrorKind.PERMISSION_DENIED,
            model=model,
            status_code=status,
            hint=self.permission_denied_hint,
        )

    def _http_failure(self, status: int, model: str, response: httpx.Response) -> GenerationError:
        if status in self.unavailable_statuses:
            return self.error(
                f"model {model} is loading or unavailable (HTTP {status})",
                ErrorKind.UNKNOWN_HTTP_ERROR,
                model=model,
                status_code=status,
                hint="Try again in 30 seconds, or add another AI provider key in Settings.",
            )
        if status == 400:
            message = f"bad request on {model}: {_error_message(response)}"
        else:
            message = f"{model} error: HTTP {status}"
        return self.error(
            message,
            ErrorKind.UNKNOWN_HTTP_ERROR,
            model=model,
            status_code=status,
            hint="Try again, or add another AI provider key in Settings.",
        )

    async def invoke(
        self,
        system_prompt: str,
        user_prompt: str,
        credential: str | None = None,
        params: GenerationParams | None = None,
    ) -> BackendReply:
        """Try every model in order, retrying rate limits per the policy."""
        credential = credential if credential is not None else self.descriptor.credential
        params = params or GenerationParams()
        failures: list[GenerationError] = []

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            for model in self.descriptor.model_fallback_list:
                call = self.build_request(model, system_prompt, user_prompt, credential, params)

                for attempt in self.policy.attempts():
                    log_extra = {"backend_id": self.id, "model": model, "attempt": attempt}
                    start = time.time()
                    try:
                        response = await client.post(
                            call.url,
                            json=call.json,
                            headers=call.headers,
                            params=call.params or None,
                        )
                    except httpx.TransportError as e:
                        failures.append(self.error(
                            f"request to {model} failed: {e}",
                            ErrorKind.UNKNOWN_HTTP_ERROR,
                            model=model,
                            hint="Check your network connection and try again.",
                        ))
                        if self.policy.has_more(attempt):
                            delay = self.policy.delay_for(attempt)
                            logger.warning(f"Transport error, retrying in {delay:.1f}s: {e}", extra=log_extra)
                            await self._sleep(delay)
                            continue
                        break

                    status = response.status_code
                    logger.debug(
                        f"{self.display_name} responded",
                        extra={
                            **log_extra,
                            "status_code": status,
                            "duration_ms": round((time.time() - start) * 1000, 2),
                        },
                    )

                    if status in (401, 403):
                        error = self._auth_failure(status, model, response)
                        logger.error(error.message, extra={**log_extra, "status_code": status})
                        raise error

                    if self.policy.is_retryable(status):
                        failures.append(self.error(
                            f"rate limited on {model}",
                            ErrorKind.TRANSIENT_RATE_LIMIT,
                            model=model,
                            status_code=status,
                            hint="Wait 1-2 minutes and try again, or add another AI provider key in Settings.",
                        ))
                        if not self.policy.has_more(attempt):
                            logger.warning(
                                f"Rate limit persisted after {attempt} attempts, trying next model",
                                extra={**log_extra, "status_code": status},
                            )
                            break
                        hint = None
                        if self.descriptor.rate_limit_policy.honor_retry_after:
                            hint = parse_retry_hint(response.headers, _safe_json(response))
                        delay = self.policy.delay_for(attempt, hint=hint)
                        logger.warning(
                            f"Rate limited, retrying in {delay:.1f}s",
                            extra={**log_extra, "status_code": status},
                        )
                        await self._sleep(delay)
                        continue

                    if not response.is_success:
                        error = self._http_failure(status, model, response)
                        failures.append(error)
                        logger.warning(error.message, extra={**log_extra, "status_code": status})
                        break

                    payload = _safe_json(response)
                    if payload is None:
                        failures.append(self.error(
                            f"{model} returned a non-JSON response",
                            ErrorKind.UNKNOWN_HTTP_ERROR,
                            model=model,
                            status_code=status,
                        ))
                        break

                    try:
                        reply = self.parse_response(model, payload)
                    except GenerationError as e:
                        if e.kind == ErrorKind.CONTENT_BLOCKED:
                            logger.warning(e.message, extra=log_extra)
                            raise
                        failures.append(e)
                        logger.warning(e.message, extra=log_extra)
                        break

                    text = reply.text.strip()
                    if len(text) < params.min_response_chars:
                        failures.append(self.error(
                            f"{model} returned too little code ({len(text)} chars)",
                            ErrorKind.VALIDATION_FAILURE,
                            model=model,
                            hint="Try again, or add another AI provider key in Settings.",
                        ))
                        logger.warning(f"Response below {params.min_response_chars} chars", extra=log_extra)
                        break

                    truncated = reply.finish_reason in self.truncation_reasons
                    if truncated:
                        logger.warning(
                            f"Completion truncated ({reply.finish_reason}), accepting for repair",
                            extra=log_extra,
                        )
                    logger.info(f"{self.display_name} generated {len(text)} chars", extra=log_extra)
                    return BackendReply(text=text, model=model, truncated=truncated)

        best = most_actionable(failures)
        if best is None:
            raise self.error("no models configured", ErrorKind.UNKNOWN_HTTP_ERROR)
        raise best


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    """Best-effort error message from a backend error body."""
    payload = _safe_json(response)
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if payload.get("message"):
            return str(payload["message"])
    return response.text[:300]
