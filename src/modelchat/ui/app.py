"""Textual application for chatting across model threads."""

import asyncio

from rich.markup import escape
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Footer, Header

from ..catalog import Model
from ..chat import ChatController
from ..dispatch import Dispatcher
from ..sessions import SessionStore
from .screens import ModelPickerScreen, RenameScreen
from .styles import APP_CSS
from .themes import MODELCHAT_DARK
from .widgets import ChatHistoryWidget, ChatInputBar, StatusBar, ThreadSidebar


class ModelChatApp(App):
    """Textual TUI over a SessionStore and a ChatController."""

    CSS = APP_CSS
    TITLE = "modelchat"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+n", "new_chat", "New Chat"),
        Binding("ctrl+g", "new_chat_with_model", "New With Model"),
        Binding("ctrl+t", "pick_model", "Model"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+x", "delete_chat", "Delete"),
        Binding("f2", "rename_chat", "Rename"),
        Binding("ctrl+s", "toggle_streaming", "Stream"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+e", "dismiss_error", "Dismiss", show=False),
        Binding("escape", "cancel_request", "Cancel"),
    ]

    def __init__(self, store: SessionStore, dispatcher: Dispatcher, streaming: bool = True) -> None:
        super().__init__()
        self._store = store
        self._controller = ChatController(
            store, dispatcher, streaming=streaming, on_change=self._on_request_change
        )
        self._unsubscribe = None

    @property
    def controller(self) -> ChatController:
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ThreadSidebar(id="thread-sidebar")
        yield ChatHistoryWidget(id="chat-history")
        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status-bar")
            yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(MODELCHAT_DARK)
        self.theme = MODELCHAT_DARK.name

        if not self._store.initialized:
            self._store.init()
        self._unsubscribe = self._store.subscribe(self._render_store)
        self._render_store()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _render_store(self) -> None:
        store = self._store
        rows = [(thread, store.model_name(thread.id) or thread.model_id) for thread in store.list_threads()]
        self.query_one("#thread-sidebar", ThreadSidebar).show_threads(rows, store.current_chat_id)

        model = store.selected_model
        self.query_one("#chat-history", ChatHistoryWidget).show_thread(
            store.current_chat_id,
            store.current_messages,
            f"Start a conversation with {model.name}",
        )
        self.sub_title = f"{model.provider.display_name} | {model.name}"
        self._render_status()

    def _render_status(self) -> None:
        controller = self._controller
        self.query_one("#status-bar", StatusBar).show_status(
            self._store.selected_model.name,
            controller.status_message,
            controller.error,
            controller.streaming,
        )
        self.query_one("#chat-input-bar", ChatInputBar).set_busy(controller.is_loading)

    def _on_request_change(self, controller: ChatController) -> None:
        try:
            chat = self.query_one("#chat-history", ChatHistoryWidget)
        except NoMatches:
            # Worker finishing after the screen was torn down
            return
        if controller.is_loading and controller.streaming and controller.partial_text:
            chat.show_partial(controller.partial_text)
        elif not controller.is_loading:
            chat.clear_partial()
        self._render_status()

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        if self._controller.is_loading:
            self.notify("Wait for the current reply or press escape", severity="warning", timeout=2)
            return
        self._send(event.value)

    @work(exclusive=True, group="chat")
    async def _send(self, text: str) -> None:
        replied = await self._controller.submit(text)
        if not replied and self._controller.error:
            self.notify(escape(self._controller.error[:80]), severity="error", timeout=5)

    def on_thread_sidebar_thread_chosen(self, event: ThreadSidebar.ThreadChosen) -> None:
        if event.thread_id == self._store.current_chat_id:
            return
        if self._store.switch_in_flight:
            return
        self._store.set_active_thread(event.thread_id)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def action_new_chat(self) -> None:
        self._store.create_thread()
        self.notify(f"New chat with {self._store.selected_model.name}", timeout=2)

    def action_new_chat_with_model(self) -> None:
        def _created(model: Model | None) -> None:
            if model is not None:
                self._store.create_thread(model.provider, model.id)

        self.push_screen(
            ModelPickerScreen(self._store.catalog, self._store.selected_model, title="New chat with"),
            _created,
        )

    def action_pick_model(self) -> None:
        def _picked(model: Model | None) -> None:
            if model is not None and model != self._store.selected_model:
                self._store.select_model(model)

        self.push_screen(ModelPickerScreen(self._store.catalog, self._store.selected_model), _picked)

    def action_clear_chat(self) -> None:
        self._store.clear_active_thread()
        self.notify("Chat cleared", timeout=2)

    def action_delete_chat(self) -> None:
        thread_id = self._store.current_chat_id
        if thread_id is not None:
            self._store.delete_thread(thread_id)
            self.notify("Chat deleted", timeout=2)

    def action_rename_chat(self) -> None:
        thread = self._store.current_thread
        if thread is None:
            return

        def _renamed(name: str | None) -> None:
            if name is not None:
                self._store.rename_thread(thread.id, name)

        self.push_screen(RenameScreen(thread.name or ""), _renamed)

    def action_toggle_streaming(self) -> None:
        self._controller.streaming = not self._controller.streaming
        self._render_status()
        self.notify(f"Streaming {'on' if self._controller.streaming else 'off'}", timeout=2)

    def action_cancel_request(self) -> None:
        if self._controller.is_loading:
            self._controller.cancel()
            self.notify("Cancelled", severity="warning", timeout=2)

    def action_dismiss_error(self) -> None:
        self._controller.dismiss_error()

    def action_copy_last_response(self) -> None:
        response = self.query_one("#chat-history", ChatHistoryWidget).get_last_response()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied")
        else:
            self.notify("No response to copy", severity="warning")


async def run_textual_tui(
    store: SessionStore,
    dispatcher: Dispatcher,
    streaming: bool = True,
) -> None:
    """Run the Textual TUI.

    Args:
        store: Session store holding the chat threads
        dispatcher: Transport used for model calls
        streaming: Start in streaming mode
    """
    app = ModelChatApp(store=store, dispatcher=dispatcher, streaming=streaming)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
