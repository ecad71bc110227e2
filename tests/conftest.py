"""Pytest configuration and shared fixtures."""
import asyncio
from typing import Any

import pytest

from modelchat.catalog import default_catalog
from modelchat.config import Settings
from modelchat.llm import ChatMessage, LLMProvider, LLMResponse, StreamingResponse
from modelchat.sessions import SessionStore, SwitchGuard


class FakeProvider(LLMProvider):
    """Scripted LLMProvider used in place of the provider SDKs.

    Args:
        reply: Text returned by chat_completion
        chunks: Fragments yielded by chat_completion_stream (defaults to [reply])
        error: Exception raised by chat_completion, or after the chunks
            when streaming
        hang: Block forever instead of answering (for cancellation tests)
        gate: Event the reply waits for before being returned
        usage: Token counts reported with the reply
    """

    def __init__(
        self,
        reply: str = "Hello",
        chunks: list[str] | None = None,
        error: Exception | None = None,
        hang: bool = False,
        gate: asyncio.Event | None = None,
        model: str = "fake-model",
        usage: dict[str, int] | None = None,
    ):
        self._model = model
        self.reply = reply
        self.chunks = chunks if chunks is not None else [reply]
        self.error = error
        self.hang = hang
        self.gate = gate
        self.usage = usage
        self._stream: StreamingResponse | None = None
        self.closed = False
        self.calls: list[list[ChatMessage]] = []
        self.started = asyncio.Event()

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion(self, messages, model=None, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(list(messages))
        self.started.set()
        if self.hang:
            await asyncio.Event().wait()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=model or self._model, usage=self.usage)

    async def chat_completion_stream(self, messages, model=None, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(list(messages))
        self._stream = StreamingResponse(self._fragments())
        return self._stream

    async def _fragments(self):
        for chunk in self.chunks:
            yield chunk
        if self.usage is not None:
            self._stream.set_usage(self.usage)
        self.started.set()
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        self.closed = True


class ScriptedFactory:
    """Provider factory handing out one FakeProvider per call."""

    def __init__(self, **behaviour: Any):
        self.behaviour = behaviour
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.providers: list[FakeProvider] = []

    def __call__(self, provider: str, **config: Any) -> FakeProvider:
        self.requests.append((provider, config))
        fake = FakeProvider(model=config.get("model", "fake-model"), **self.behaviour)
        self.providers.append(fake)
        return fake


@pytest.fixture
def settings():
    """Settings with both providers configured."""
    return Settings(openai_api_key="sk-test-openai-key", anthropic_api_key="sk-ant-test-key")


@pytest.fixture
def openai_only_settings():
    """Settings with only OpenAI configured."""
    return Settings(openai_api_key="sk-test-openai-key")


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def store(catalog):
    """Initialized store without a switch cooldown."""
    s = SessionStore(catalog=catalog, switch_guard=SwitchGuard(cooldown=0))
    s.init()
    return s


@pytest.fixture
def fake_factory():
    """Factory returning providers that answer 'Hello'."""
    return ScriptedFactory(reply="Hello", chunks=["Hel", "lo"])


@pytest.fixture
def make_factory():
    """Build a ScriptedFactory with custom provider behaviour."""
    return ScriptedFactory
