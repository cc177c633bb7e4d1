"""Pytest fixtures for ZeroBuild tests."""

import json
from typing import Any, Callable
from unittest.mock import AsyncMock

import httpx
import pytest

from zerobuild.errors import GenerationError
from zerobuild.llm.base import BackendAdapter, BackendReply
from zerobuild.models import BackendDescriptor, GenerationParams
from zerobuild.resilience.retry import RateLimitPolicy

SAMPLE_APP = """import React, { useState } from 'react';
import { View, Text, StyleSheet, TouchableOpacity } from 'react-native';

export default function App() {
  const [count, setCount] = useState(0);
  return (
    <View style={styles.container}>
      <Text style={styles.title}>Taps: {count}</Text>
      <TouchableOpacity onPress={() => setCount(count + 1)}>
        <Text>Tap me</Text>
      </TouchableOpacity>
    </View>
  );
}

const styles = StyleSheet.create({
  container: { flex: 1, alignItems: 'center', justifyContent: 'center' },
  title: { fontSize: 24, marginBottom: 16 },
});"""


# Configure pytest-asyncio markers
def pytest_configure(config):
    """Register the asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


def make_descriptor(
    backend_id: str = "gemini",
    credential: str = "test-key",
    models: tuple[str, ...] = ("model-a",),
    base_delay: float = 5.0,
    max_delay: float = 15.0,
) -> BackendDescriptor:
    return BackendDescriptor(
        id=backend_id,
        credential=credential,
        model_fallback_list=models,
        rate_limit_policy=RateLimitPolicy(base_delay_seconds=base_delay, max_delay_seconds=max_delay),
    )


def json_response(status: int, payload: Any, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload), headers={
        "content-type": "application/json",
        **(headers or {}),
    })


class FakeAdapter(BackendAdapter):
    """Adapter returning scripted text or raising a scripted error."""

    def __init__(
        self,
        backend_id: str,
        result: str | Exception = "",
        credential: str = "key",
        model: str = "fake-model",
    ) -> None:
        super().__init__(make_descriptor(backend_id, credential=credential, models=(model,)))
        self.result = result
        self.model = model
        self.calls: list[tuple[str, str]] = []

    async def invoke(
        self,
        system_prompt: str,
        user_prompt: str,
        credential: str | None = None,
        params: GenerationParams | None = None,
    ) -> BackendReply:
        self.calls.append((system_prompt, user_prompt))
        if isinstance(self.result, Exception):
            raise self.result
        return BackendReply(text=self.result, model=self.model)


def failing(backend_id: str, kind, message: str = "failed") -> GenerationError:
    return GenerationError(f"{backend_id}: {message}", kind, hint="hint", backend_id=backend_id)


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Replacement for asyncio.sleep that records delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def sample_app() -> str:
    return SAMPLE_APP


@pytest.fixture
def recording_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], tuple[httpx.MockTransport, list[httpx.Request]]]:
    """Build a MockTransport that records every request it serves."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]):
        seen: list[httpx.Request] = []

        def wrapped(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        return httpx.MockTransport(wrapped), seen

    return factory
