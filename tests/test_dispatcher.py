"""Unit tests for the in-process dispatcher and cancellation."""
import asyncio
from unittest.mock import MagicMock

import pytest

from modelchat.catalog import Provider
from modelchat.dispatch import (
    CancellationToken,
    HttpDispatcher,
    LocalDispatcher,
    StreamEvent,
    collect_stream,
    create_dispatcher,
)
from modelchat.dispatch import local as local_dispatch
from modelchat.dispatch.models import CONNECTING_STATUS
from modelchat.errors import DispatchCancelled, DispatchError, MissingCredentialError
from modelchat.sessions import Message

CONVERSATION = [Message.user("Hi"), Message.assistant("Hello!"), Message.user("How are you?")]


async def _wait_for_provider(factory):
    while not factory.providers:
        await asyncio.sleep(0)
    provider = factory.providers[0]
    await provider.started.wait()
    return provider


class TestLocalComplete:
    """Tests for buffered mode."""

    @pytest.mark.asyncio
    async def test_returns_reply_text(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)

        text = await dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o")

        assert text == "Hello"

    @pytest.mark.asyncio
    async def test_creates_provider_with_key_and_model(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)

        await dispatcher.complete(CONVERSATION, "anthropic", "claude-3-haiku-20240307")

        provider, config = fake_factory.requests[0]
        assert provider == "anthropic"
        assert config == {"api_key": "sk-ant-test-key", "model": "claude-3-haiku-20240307"}

    @pytest.mark.asyncio
    async def test_sends_full_conversation_in_order(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)

        await dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o")

        sent = fake_factory.providers[0].calls[0]
        assert [(m.role, m.content) for m in sent] == [(m.role, m.content) for m in CONVERSATION]

    @pytest.mark.asyncio
    async def test_provider_is_closed_after_call(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)
        await dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o")
        assert fake_factory.providers[0].closed

    @pytest.mark.asyncio
    async def test_missing_credential_fails_before_any_call(self, openai_only_settings, fake_factory):
        dispatcher = LocalDispatcher(openai_only_settings, provider_factory=fake_factory)

        with pytest.raises(MissingCredentialError) as exc_info:
            await dispatcher.complete(CONVERSATION, Provider.ANTHROPIC, "claude-3-haiku-20240307")

        assert str(exc_info.value) == (
            "Anthropic API key is not set. "
            "Please add ANTHROPIC_API_KEY to your environment variables."
        )
        assert exc_info.value.provider == "anthropic"
        assert fake_factory.requests == []

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_dispatch_error(self, settings, make_factory):
        factory = make_factory(error=RuntimeError("rate limited"))
        dispatcher = LocalDispatcher(settings, provider_factory=factory)

        with pytest.raises(DispatchError) as exc_info:
            await dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o")

        assert exc_info.value.message == "Failed to generate text"
        assert exc_info.value.details == "rate limited"
        assert factory.providers[0].closed

    @pytest.mark.asyncio
    async def test_cancel_in_flight_call(self, settings, make_factory):
        factory = make_factory(hang=True)
        dispatcher = LocalDispatcher(settings, provider_factory=factory)
        token = CancellationToken()

        task = asyncio.create_task(dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o", token=token))
        provider = await _wait_for_provider(factory)
        token.cancel()

        with pytest.raises(DispatchCancelled):
            await task
        assert provider.closed

    @pytest.mark.asyncio
    async def test_cancelled_token_skips_call(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)
        token = CancellationToken()
        token.cancel()

        with pytest.raises(DispatchCancelled):
            await dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o", token=token)
        assert fake_factory.requests == []


class TestLocalStream:
    """Tests for streaming mode."""

    @pytest.mark.asyncio
    async def test_status_chunks_then_done(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)

        events = [e async for e in dispatcher.stream(CONVERSATION, Provider.OPENAI, "gpt-4o")]

        assert events == [
            StreamEvent.status(CONNECTING_STATUS),
            StreamEvent.chunk("Hel"),
            StreamEvent.chunk("lo"),
            StreamEvent.done("Hello"),
        ]

    @pytest.mark.asyncio
    async def test_done_text_is_concatenation_of_chunks(self, settings, make_factory):
        factory = make_factory(chunks=["The ", "answer ", "is ", "42."])
        dispatcher = LocalDispatcher(settings, provider_factory=factory)

        events = [e async for e in dispatcher.stream(CONVERSATION, Provider.ANTHROPIC, "claude-3-haiku-20240307")]

        chunks = "".join(e.text for e in events if e.type == "chunk")
        assert events[-1].type == "done"
        assert events[-1].text == chunks == "The answer is 42."

    @pytest.mark.asyncio
    async def test_failure_mid_stream_emits_one_error_event(self, settings, make_factory):
        factory = make_factory(chunks=["Hel"], error=RuntimeError("connection reset"))
        dispatcher = LocalDispatcher(settings, provider_factory=factory)

        events = [e async for e in dispatcher.stream(CONVERSATION, Provider.OPENAI, "gpt-4o")]

        assert [e.type for e in events] == ["status", "chunk", "error"]
        assert events[-1].text == "An error occurred while generating the response: connection reset"
        assert sum(1 for e in events if e.terminal) == 1

    @pytest.mark.asyncio
    async def test_missing_credential_raises_before_events(self, openai_only_settings, fake_factory):
        dispatcher = LocalDispatcher(openai_only_settings, provider_factory=fake_factory)
        events = []

        with pytest.raises(MissingCredentialError):
            async for event in dispatcher.stream(CONVERSATION, "anthropic", "claude-3-haiku-20240307"):
                events.append(event)

        assert events == []
        assert fake_factory.requests == []

    @pytest.mark.asyncio
    async def test_cancel_mid_stream_emits_no_terminal_event(self, settings, make_factory):
        factory = make_factory(chunks=["Hel"], hang=True)
        dispatcher = LocalDispatcher(settings, provider_factory=factory)
        token = CancellationToken()
        events = []

        async def consume():
            async for event in dispatcher.stream(CONVERSATION, Provider.OPENAI, "gpt-4o", token=token):
                events.append(event)

        task = asyncio.create_task(consume())
        provider = await _wait_for_provider(factory)
        token.cancel()

        with pytest.raises(DispatchCancelled):
            await task
        assert [e.type for e in events] == ["status", "chunk"]
        assert provider.closed

    @pytest.mark.asyncio
    async def test_collect_stream_returns_done_text(self, settings, fake_factory):
        dispatcher = LocalDispatcher(settings, provider_factory=fake_factory)
        text = await collect_stream(dispatcher.stream(CONVERSATION, Provider.OPENAI, "gpt-4o"))
        assert text == "Hello"


class TestUsageLogging:
    """Tests for token usage reported in completion log events."""

    USAGE = {"prompt_tokens": 7, "completion_tokens": 2, "total_tokens": 9}

    @pytest.mark.asyncio
    async def test_buffered_response_logs_usage(self, settings, make_factory, monkeypatch):
        log = MagicMock()
        monkeypatch.setattr(local_dispatch, "logger", log)
        dispatcher = LocalDispatcher(settings, provider_factory=make_factory(usage=self.USAGE))

        await dispatcher.complete(CONVERSATION, Provider.OPENAI, "gpt-4o")

        received = [c for c in log.info.call_args_list if c.args[0] == "Response received"]
        assert received[0].kwargs["usage"] == self.USAGE

    @pytest.mark.asyncio
    async def test_stream_logs_usage(self, settings, make_factory, monkeypatch):
        log = MagicMock()
        monkeypatch.setattr(local_dispatch, "logger", log)
        dispatcher = LocalDispatcher(
            settings, provider_factory=make_factory(chunks=["Hel", "lo"], usage=self.USAGE)
        )

        await collect_stream(dispatcher.stream(CONVERSATION, Provider.OPENAI, "gpt-4o"))

        finished = [c for c in log.info.call_args_list if c.args[0] == "Stream finished"]
        assert finished[0].kwargs["usage"] == self.USAGE
        assert finished[0].kwargs["chunks"] == 2


class TestCollectStream:
    """Tests for consuming a stream into text."""

    @staticmethod
    async def _events(*events):
        for event in events:
            yield event

    @pytest.mark.asyncio
    async def test_error_event_raises(self):
        with pytest.raises(DispatchError, match="quota"):
            await collect_stream(self._events(StreamEvent.status(), StreamEvent.error("quota exceeded")))

    @pytest.mark.asyncio
    async def test_missing_terminal_event_raises(self):
        with pytest.raises(DispatchError, match="without a terminal event"):
            await collect_stream(self._events(StreamEvent.chunk("partial")))


class TestCancellationToken:
    """Tests for CancellationToken."""

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        async def answer():
            return 42

        assert await CancellationToken().run(answer()) == 42

    @pytest.mark.asyncio
    async def test_run_propagates_errors(self):
        async def fail():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await CancellationToken().run(fail())

    @pytest.mark.asyncio
    async def test_cancel_aborts_pending_awaitable(self):
        token = CancellationToken()
        started = asyncio.Event()
        aborted = asyncio.Event()

        async def slow():
            started.set()
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                aborted.set()
                raise

        task = asyncio.create_task(token.run(slow()))
        await started.wait()
        token.cancel()

        with pytest.raises(DispatchCancelled):
            await task
        assert aborted.is_set()

    @pytest.mark.asyncio
    async def test_caller_cancellation_aborts_pending_awaitable(self):
        token = CancellationToken()
        started = asyncio.Event()
        aborted = asyncio.Event()
        finished = asyncio.Event()

        async def provider_call():
            started.set()
            try:
                await asyncio.sleep(0.3)
            except asyncio.CancelledError:
                aborted.set()
                raise
            finished.set()

        task = asyncio.create_task(token.run(provider_call()))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.5)
        assert aborted.is_set()
        assert not finished.is_set()
        assert not token.cancelled

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled
        with pytest.raises(DispatchCancelled):
            token.raise_if_cancelled()


class TestCreateDispatcher:
    """Tests for the dispatcher factory."""

    def test_local_transport(self, settings):
        assert isinstance(create_dispatcher("local", settings), LocalDispatcher)

    @pytest.mark.asyncio
    async def test_http_transport(self, settings):
        dispatcher = create_dispatcher("http", settings, base_url="http://relay.test")
        assert isinstance(dispatcher, HttpDispatcher)
        await dispatcher.close()

    def test_unsupported_transport(self, settings):
        with pytest.raises(ValueError, match="Unsupported dispatcher transport"):
            create_dispatcher("carrier-pigeon", settings)
