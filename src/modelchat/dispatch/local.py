"""In-process dispatcher calling the provider SDKs directly."""

import time
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

from ..catalog import Provider
from ..config import Settings
from ..errors import DispatchCancelled, DispatchError, MissingCredentialError
from ..llm import ChatMessage, LLMProvider, create_llm_provider
from ..log import get_logger
from ..sessions import Message
from .base import Dispatcher
from .cancellation import CancellationToken
from .models import StreamEvent

logger = get_logger("modelchat.dispatch")

ProviderFactory = Callable[..., LLMProvider]


def to_chat_messages(messages: Sequence[Message]) -> list[ChatMessage]:
    """Convert thread messages to the provider wire format."""
    return [ChatMessage(role=m.role, content=m.content) for m in messages]


class LocalDispatcher(Dispatcher):
    """Dispatch through an LLMProvider created per request.

    A provider client lives only for the duration of one call, so a
    cancelled or failed call leaves nothing behind.

    Args:
        settings: Source of provider API keys
        provider_factory: Builds an LLMProvider from (provider, api_key=, model=)
    """

    def __init__(
        self,
        settings: Settings,
        provider_factory: ProviderFactory = create_llm_provider,
    ):
        self._settings = settings
        self._provider_factory = provider_factory

    def ensure_configured(self, provider: Provider | str) -> None:
        provider_enum = Provider(provider)
        if not self._settings.has_credential(provider_enum):
            raise MissingCredentialError(provider_enum)

    def _create_provider(self, provider: Provider, model_id: str) -> LLMProvider:
        api_key = self._settings.api_key_for(provider)
        return self._provider_factory(provider.value, api_key=api_key, model=model_id)

    async def complete(
        self,
        messages: Sequence[Message],
        provider: Provider | str,
        model_id: str,
        token: CancellationToken | None = None,
    ) -> str:
        provider_enum = Provider(provider)
        self.ensure_configured(provider_enum)
        token = token or CancellationToken()
        token.raise_if_cancelled()

        logger.info(
            "Dispatching buffered request",
            provider=provider_enum.value,
            model_id=model_id,
            message_count=len(messages),
        )
        started = time.monotonic()

        llm = self._create_provider(provider_enum, model_id)
        try:
            async with llm:
                response = await token.run(
                    llm.chat_completion(to_chat_messages(messages), model=model_id)
                )
        except DispatchCancelled:
            logger.info("Buffered request cancelled", provider=provider_enum.value, model_id=model_id)
            raise
        except Exception as e:
            logger.error("Error generating text", provider=provider_enum.value, model_id=model_id, error=str(e))
            raise DispatchError("Failed to generate text", details=str(e)) from e

        logger.info(
            "Response received",
            provider=provider_enum.value,
            model_id=model_id,
            length=len(response.content),
            usage=response.usage,
            duration=round(time.monotonic() - started, 3),
        )
        return response.content

    async def stream(
        self,
        messages: Sequence[Message],
        provider: Provider | str,
        model_id: str,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        provider_enum = Provider(provider)
        self.ensure_configured(provider_enum)
        token = token or CancellationToken()
        token.raise_if_cancelled()

        logger.info(
            "Dispatching streaming request",
            provider=provider_enum.value,
            model_id=model_id,
            message_count=len(messages),
        )
        yield StreamEvent.status()

        parts: list[str] = []
        failure: Exception | None = None
        llm = self._create_provider(provider_enum, model_id)
        try:
            async with llm:
                fragments = await token.run(
                    llm.chat_completion_stream(to_chat_messages(messages), model=model_id)
                )
                try:
                    while True:
                        fragment = await token.run(_next_fragment(fragments))
                        if fragment is None:
                            break
                        parts.append(fragment)
                        yield StreamEvent.chunk(fragment)
                finally:
                    await fragments.aclose()
        except DispatchCancelled:
            logger.info("Streaming request cancelled", provider=provider_enum.value, model_id=model_id)
            raise
        except Exception as e:
            failure = e

        if failure is not None:
            logger.error(
                "Error in stream",
                provider=provider_enum.value,
                model_id=model_id,
                chunks=len(parts),
                error=str(failure),
            )
            yield StreamEvent.error(
                f"An error occurred while generating the response: {failure}"
            )
            return

        logger.info(
            "Stream finished",
            provider=provider_enum.value,
            model_id=model_id,
            chunks=len(parts),
            usage=fragments.usage,
        )
        yield StreamEvent.done("".join(parts))


async def _next_fragment(fragments: Any) -> str | None:
    """Await the next fragment, or None once the stream is exhausted."""
    try:
        return await fragments.__anext__()
    except StopAsyncIteration:
        return None
