"""Abstract chat dispatcher.

This module hides the transport used to reach a model: in-process SDK
calls or the HTTP relay. Both speak the same contract:

- complete(): one request, the full reply text or an exception
- stream(): a status event, chunk events, then exactly one done or
  error event

Neither retries, caches nor rate-limits. Missing credentials raise
MissingCredentialError before any network call; cancellation through a
CancellationToken raises DispatchCancelled.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence

from ..catalog import Provider
from ..errors import DispatchError
from ..sessions import Message
from .cancellation import CancellationToken
from .models import StreamEvent


class Dispatcher(ABC):
    """Sends a thread's messages to a model and returns the reply."""

    @abstractmethod
    def ensure_configured(self, provider: Provider | str) -> None:
        """Raise MissingCredentialError if the provider cannot be called."""

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[Message],
        provider: Provider | str,
        model_id: str,
        token: CancellationToken | None = None,
    ) -> str:
        """Buffered mode: return the full reply text.

        Raises:
            MissingCredentialError: Provider has no API key
            DispatchError: Provider or network failure
            DispatchCancelled: The token was cancelled
        """

    @abstractmethod
    def stream(
        self,
        messages: Sequence[Message],
        provider: Provider | str,
        model_id: str,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Streaming mode: yield status, chunk and one terminal event.

        Provider failures after the stream started arrive as an `error`
        event. Missing credentials and cancellation raise as in complete().
        """

    async def close(self) -> None:
        """Release transport resources."""

    async def __aenter__(self) -> "Dispatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def collect_stream(events: AsyncIterator[StreamEvent]) -> str:
    """Consume a stream and return the final text.

    Raises:
        DispatchError: If the stream ends with an error event or without
            a terminal event
    """
    parts: list[str] = []
    async for event in events:
        if event.type == "chunk":
            parts.append(event.text)
        elif event.type == "done":
            return event.text
        elif event.type == "error":
            raise DispatchError("Failed to generate text", details=event.text)
    raise DispatchError("Stream ended without a terminal event", details="".join(parts) or None)
