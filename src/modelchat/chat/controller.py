"""Submit/cancel flow between the session store and a dispatcher.

Hides how a user prompt becomes store mutations:
1. the user message is appended optimistically
2. one dispatcher call runs (buffered or streaming)
3. on success the assistant message is appended to the same thread
4. on failure a dismissible error is recorded; on cancel nothing is

The controller keeps the transient request state a front-end renders:
loading flag, status line, partial streamed text and the last error.
"""

from collections.abc import Callable

from ..dispatch import CancellationToken, Dispatcher
from ..errors import DispatchCancelled, DispatchError
from ..log import get_logger
from ..sessions import Message, SessionStore

logger = get_logger("modelchat.chat")

THINKING_STATUS = "AI is thinking..."

ChangeCallback = Callable[["ChatController"], None]


class ChatController:
    """Runs at most one dispatcher call at a time over a SessionStore.

    Args:
        store: Initialized session store
        dispatcher: Transport used for model calls
        streaming: Use streaming mode instead of buffered mode
        on_change: Called whenever the transient request state changes
    """

    def __init__(
        self,
        store: SessionStore,
        dispatcher: Dispatcher,
        streaming: bool = False,
        on_change: ChangeCallback | None = None,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self.streaming = streaming
        self._on_change = on_change

        self._token: CancellationToken | None = None
        self.is_loading = False
        self.status_message = ""
        self.partial_text = ""
        self.error: str | None = None

    @property
    def store(self) -> SessionStore:
        return self._store

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def _reset_request_state(self) -> None:
        self.is_loading = False
        self.status_message = ""
        self.partial_text = ""
        self._token = None

    async def submit(self, text: str) -> bool:
        """Send a user prompt on the active thread.

        Ignored when the prompt is blank or a call is already in flight.

        Returns:
            True when an assistant reply was appended
        """
        if not text.strip() or self.is_loading:
            return False

        thread = self._store.current_thread
        if thread is None:
            return False

        self.error = None
        token = CancellationToken()
        self._token = token

        thread_id = thread.id
        updated = (*thread.messages, Message.user(text))
        self._store.append_messages(updated, thread_id=thread_id)
        self.is_loading = True
        self.status_message = THINKING_STATUS
        self._changed()

        try:
            reply = await self._dispatch(updated, thread.provider, thread.model_id, token)
        except DispatchCancelled:
            logger.info("Request aborted", thread_id=thread_id)
            return False
        except DispatchError as e:
            if token.cancelled:
                return False
            self.error = str(e)
            logger.error("Chat request failed", thread_id=thread_id, error=self.error)
            return False
        finally:
            if self._token is token:
                self._reset_request_state()
            self._changed()

        if token.cancelled:
            return False
        self._store.append_messages((*updated, Message.assistant(reply)), thread_id=thread_id)
        return True

    async def _dispatch(self, messages, provider, model_id, token: CancellationToken) -> str:
        if not self.streaming:
            return await self._dispatcher.complete(messages, provider, model_id, token=token)

        self.partial_text = ""
        async for event in self._dispatcher.stream(messages, provider, model_id, token=token):
            if event.type == "status":
                self.status_message = event.text
            elif event.type == "chunk":
                self.partial_text += event.text
            elif event.type == "done":
                return event.text
            elif event.type == "error":
                raise DispatchError(event.text)
            self._changed()
        raise DispatchError("Stream ended without a response")

    def cancel(self) -> None:
        """Abort the in-flight call, if any. Never records an error."""
        if self._token is not None:
            self._token.cancel()
        self._reset_request_state()
        self.error = None
        self._changed()

    def dismiss_error(self) -> None:
        self.error = None
        self._changed()
