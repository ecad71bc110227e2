"""HTTP dispatcher talking to the modelchat relay.

Buffered calls go to POST /api/simple-chat, streaming calls to
POST /api/chat (server-sent events).
"""

from collections.abc import AsyncIterator, Sequence

import httpx
from pydantic import ValidationError

from ..catalog import Provider
from ..errors import DispatchCancelled, DispatchError, MissingCredentialError
from ..log import get_logger
from ..sessions import Message
from .base import Dispatcher
from .cancellation import CancellationToken
from .models import BufferedResponse, DispatchRequest, StreamEvent
from .sse import iter_sse_events

logger = get_logger("modelchat.dispatch.remote")

SIMPLE_CHAT_PATH = "/api/simple-chat"
STREAM_CHAT_PATH = "/api/chat"
INVALID_RESPONSE = "Invalid response from the chat server"


def _error_from_response(response: httpx.Response, provider: Provider) -> DispatchError:
    """Map a non-2xx relay response to a dispatcher error."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("error") or f"Server responded with {response.status_code}"
    details = body.get("details")
    if response.status_code == 401:
        return MissingCredentialError(provider, message)
    return DispatchError(
        f"Server responded with {response.status_code}: {message}",
        details=details,
    )


class HttpDispatcher(Dispatcher):
    """Dispatch over HTTP to a running relay.

    Credentials live on the server; ensure_configured() therefore checks
    nothing locally and a 401 from the relay is reported as
    MissingCredentialError.

    Args:
        base_url: Relay root, e.g. http://127.0.0.1:8000
        client: Optional preconfigured httpx.AsyncClient (owned by caller)
        timeout: Request timeout in seconds (None for no timeout)
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    def ensure_configured(self, provider: Provider | str) -> None:
        Provider(provider)

    @staticmethod
    def _body(messages: Sequence[Message], provider: Provider, model_id: str) -> dict:
        request = DispatchRequest(messages=list(messages), provider=provider, model_id=model_id)
        return request.model_dump(mode="json", by_alias=True)

    async def complete(
        self,
        messages: Sequence[Message],
        provider: Provider | str,
        model_id: str,
        token: CancellationToken | None = None,
    ) -> str:
        provider_enum = Provider(provider)
        token = token or CancellationToken()
        token.raise_if_cancelled()

        try:
            response = await token.run(
                self._client.post(SIMPLE_CHAT_PATH, json=self._body(messages, provider_enum, model_id))
            )
        except DispatchCancelled:
            raise
        except httpx.HTTPError as e:
            raise DispatchError("Failed to reach the chat server", details=str(e)) from e

        logger.debug("Relay responded", status_code=response.status_code, path=SIMPLE_CHAT_PATH)
        if response.is_error:
            raise _error_from_response(response, provider_enum)
        try:
            return BufferedResponse.model_validate_json(response.content).text
        except ValidationError as e:
            logger.error("Unreadable relay response", path=SIMPLE_CHAT_PATH, error=str(e))
            raise DispatchError(INVALID_RESPONSE, details=response.text[:200]) from e

    async def stream(
        self,
        messages: Sequence[Message],
        provider: Provider | str,
        model_id: str,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        provider_enum = Provider(provider)
        token = token or CancellationToken()
        token.raise_if_cancelled()

        request = self._client.build_request(
            "POST", STREAM_CHAT_PATH, json=self._body(messages, provider_enum, model_id)
        )
        try:
            response = await token.run(self._client.send(request, stream=True))
        except DispatchCancelled:
            raise
        except httpx.HTTPError as e:
            raise DispatchError("Failed to reach the chat server", details=str(e)) from e

        try:
            if response.is_error:
                await response.aread()
                raise _error_from_response(response, provider_enum)

            events = iter_sse_events(response.aiter_lines())
            try:
                while True:
                    event = await token.run(_next_event(events))
                    if event is None:
                        break
                    yield event
                    if event.terminal:
                        break
            finally:
                await events.aclose()
        except httpx.HTTPError as e:
            yield StreamEvent.error(f"An error occurred while generating the response: {e}")
        except ValueError as e:
            # Malformed JSON or an unknown event shape in a data frame.
            logger.error("Unreadable relay frame", path=STREAM_CHAT_PATH, error=str(e))
            yield StreamEvent.error(f"{INVALID_RESPONSE}: {e}")
        finally:
            await response.aclose()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


async def _next_event(events: AsyncIterator[StreamEvent]) -> StreamEvent | None:
    try:
        return await events.__anext__()
    except StopAsyncIteration:
        return None
