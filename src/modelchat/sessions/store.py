"""In-memory session store for chat threads.

Holds every chat thread of the running process, the active thread and the
selected model. The store is owned by the application's top-level scope
and handed to the front-end; it is never reached through a module global.

Invariants (hold after every public operation returns):
- after init(), chat_sessions is never empty
- current_chat_id is None or a key of chat_sessions
- current_messages is the active thread's message tuple (same object)

Mutations are synchronous and expected to run on a single event loop.
"""

from collections.abc import Callable, Iterable

from ..catalog import Model, ModelCatalog, Provider, default_catalog
from ..errors import StoreNotInitializedError
from ..log import get_logger
from .guard import SwitchGuard
from .models import ChatThread, Message

logger = get_logger("modelchat.sessions")

Listener = Callable[["SessionStore"], None]


class SessionStore:
    """Multi-thread chat state with exactly one active thread.

    Usage:
        store = SessionStore()
        store.init()
        store.append_messages([Message.user("hi")])
        store.select_model(catalog.resolve("anthropic", "claude-3-haiku-20240307"))
    """

    def __init__(
        self,
        catalog: ModelCatalog | None = None,
        switch_guard: SwitchGuard | None = None,
    ):
        self._catalog = catalog or default_catalog()
        self._guard = switch_guard or SwitchGuard()
        self._selected_model: Model = self._catalog.default
        self._current_chat_id: str | None = None
        self._sessions: dict[str, ChatThread] = {}
        self._listeners: list[Listener] = []
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle and observers
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Seed the store with one empty thread on the default model."""
        if self._initialized:
            return
        self._initialized = True
        self._selected_model = self._catalog.default
        self._new_thread(self._selected_model)
        logger.debug("Session store initialized", model=self._selected_model.key)
        self._notify()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every completed mutation.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _require_init(self) -> None:
        if not self._initialized:
            raise StoreNotInitializedError("SessionStore.init() must be called first")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> ModelCatalog:
        return self._catalog

    @property
    def selected_model(self) -> Model:
        return self._selected_model

    @property
    def current_chat_id(self) -> str | None:
        return self._current_chat_id

    @property
    def chat_sessions(self) -> dict[str, ChatThread]:
        """Snapshot of all threads keyed by id."""
        return dict(self._sessions)

    @property
    def current_thread(self) -> ChatThread | None:
        if self._current_chat_id is None:
            return None
        return self._sessions[self._current_chat_id]

    @property
    def current_messages(self) -> tuple[Message, ...]:
        """Messages of the active thread, read through from the thread itself."""
        thread = self.current_thread
        return thread.messages if thread is not None else ()

    @property
    def switch_in_flight(self) -> bool:
        return self._guard.busy

    def get_thread(self, thread_id: str) -> ChatThread | None:
        return self._sessions.get(thread_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def select_model(self, model: Model) -> None:
        """Select a model, resuming its most recent thread or starting one."""
        self._require_init()
        if model.provider == self._selected_model.provider and model.id == self._selected_model.id:
            return

        self._selected_model = model
        existing = self._latest_thread_for(model)
        if existing is not None:
            self._current_chat_id = existing.id
            logger.debug("Resumed thread for model", thread_id=existing.id, model=model.key)
        else:
            thread = self._new_thread(model)
            logger.debug("Created thread for model", thread_id=thread.id, model=model.key)
        self._notify()

    def create_thread(
        self,
        provider: Provider | str | None = None,
        model_id: str | None = None,
    ) -> str:
        """Start a fresh, empty thread and make it active.

        When both provider and model_id are given and resolve in the catalog,
        the selected model follows them. Otherwise the selected model is used.
        An existing thread for the same model is never reused.

        Returns:
            The new thread's id
        """
        self._require_init()
        if provider is not None and model_id is not None:
            resolved = self._catalog.resolve(provider, model_id)
            if resolved is not None:
                self._selected_model = resolved
            else:
                logger.warning("Unknown model requested", provider=str(provider), model_id=model_id)

        thread = self._new_thread(self._selected_model)
        logger.debug("Created new chat", thread_id=thread.id, model=self._selected_model.key)
        self._notify()
        return thread.id

    def set_active_thread(self, thread_id: str) -> None:
        """Switch to another thread.

        Dropped silently when the thread is unknown, already active, or a
        switch is in flight or cooling down.
        """
        self._require_init()
        if thread_id not in self._sessions or thread_id == self._current_chat_id:
            return
        if self._guard.busy:
            logger.debug("Dropped thread switch during cooldown", thread_id=thread_id)
            return

        with self._guard.hold():
            thread = self._sessions[thread_id]
            self._current_chat_id = thread_id
            if not thread.is_bound_to(self._selected_model):
                model = self._catalog.resolve(thread.provider, thread.model_id)
                if model is not None:
                    self._selected_model = model
            logger.debug("Switched thread", thread_id=thread_id, model=self._selected_model.key)
            self._notify()

    def append_messages(self, messages: Iterable[Message], thread_id: str | None = None) -> None:
        """Replace a thread's message list with the given ordered sequence.

        Args:
            messages: Complete desired message list
            thread_id: Target thread; defaults to the active thread
        """
        self._require_init()
        target = thread_id or self._current_chat_id
        if target is None or target not in self._sessions:
            return
        thread = self._sessions[target]
        self._sessions[target] = thread.model_copy(update={"messages": tuple(messages)})
        self._notify()

    def clear_active_thread(self) -> None:
        """Empty the active thread's message list."""
        self._require_init()
        if self._current_chat_id is None:
            return
        self.append_messages(())

    def delete_thread(self, thread_id: str) -> None:
        """Remove a thread, re-homing the active selection if needed."""
        self._require_init()
        if thread_id not in self._sessions:
            return

        del self._sessions[thread_id]
        logger.debug("Deleted thread", thread_id=thread_id)

        if thread_id == self._current_chat_id:
            remaining = self.list_threads()
            if remaining:
                fallback = remaining[0]
                self._current_chat_id = fallback.id
                model = self._catalog.resolve(fallback.provider, fallback.model_id)
                if model is not None:
                    self._selected_model = model
            else:
                self._new_thread(self._selected_model)
        self._notify()

    def rename_thread(self, thread_id: str, name: str) -> None:
        self._require_init()
        thread = self._sessions.get(thread_id)
        if thread is None:
            return
        self._sessions[thread_id] = thread.model_copy(update={"name": name or None})
        self._notify()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def list_threads(self) -> list[ChatThread]:
        """All threads, newest first (creation order breaks timestamp ties)."""
        ordered = enumerate(self._sessions.values())
        return [t for _, t in sorted(ordered, key=lambda p: (p[1].created_at, p[0]), reverse=True)]

    def preview(self, thread_id: str) -> str | None:
        thread = self._sessions.get(thread_id)
        return thread.preview if thread is not None else None

    def user_message_count(self, thread_id: str) -> int:
        thread = self._sessions.get(thread_id)
        return thread.user_message_count if thread is not None else 0

    def model_name(self, thread_id: str) -> str | None:
        """Display name of the model a thread is bound to."""
        thread = self._sessions.get(thread_id)
        if thread is None:
            return None
        return self._catalog.display_name(thread.provider, thread.model_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_thread(self, model: Model) -> ChatThread:
        thread = ChatThread.for_model(model)
        self._sessions[thread.id] = thread
        self._current_chat_id = thread.id
        return thread

    def _latest_thread_for(self, model: Model) -> ChatThread | None:
        for thread in self.list_threads():
            if thread.is_bound_to(model):
                return thread
        return None
