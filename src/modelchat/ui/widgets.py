"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Thread list rendering and selection
- Chat message rendering and incremental updates
- Input history management
- Status line formatting
"""

from rich.markup import escape
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message as TextualMessage
from textual.widgets import Button, Label, ListItem, ListView, Markdown, Static, TextArea

from ..sessions import ChatThread, Message


class ClickableMessage(Vertical):
    """A chat message container that copies its content when clicked."""

    def __init__(self, content: str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._content = content

    def on_click(self, event: Click) -> None:
        event.stop()
        self.app.copy_to_clipboard(self._content)
        self.app.notify("Copied to clipboard", timeout=2)


class ThreadItem(ListItem):
    """One row of the thread sidebar."""

    def __init__(self, thread: ChatThread, model_name: str, active: bool) -> None:
        super().__init__(classes="thread-item -active" if active else "thread-item")
        self.thread_id = thread.id
        self._title = thread.preview
        self._subtitle = f"{model_name} · {thread.user_message_count} msgs"

    def compose(self):
        yield Label(self._title, classes="thread-title", markup=False)
        yield Label(self._subtitle, classes="thread-subtitle")


class ThreadSidebar(ListView):
    """Thread list, newest first. Enter or click activates a thread."""

    BORDER_TITLE = "Chats"

    class ThreadChosen(TextualMessage):
        """Posted when the user picks a thread."""

        def __init__(self, thread_id: str) -> None:
            super().__init__()
            self.thread_id = thread_id

    def show_threads(self, rows: list[tuple[ChatThread, str]], active_id: str | None) -> None:
        """Replace the list with the given (thread, model name) rows."""
        self.clear()
        active_index = 0
        for i, (thread, model_name) in enumerate(rows):
            self.append(ThreadItem(thread, model_name, thread.id == active_id))
            if thread.id == active_id:
                active_index = i
        self.border_subtitle = f"{len(rows)} chats"
        self.call_after_refresh(self._highlight, active_index)

    def _highlight(self, index: int) -> None:
        if 0 <= index < len(self.children):
            self.index = index

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if isinstance(event.item, ThreadItem):
            self.post_message(self.ThreadChosen(event.item.thread_id))


class ChatHistoryWidget(VerticalScroll):
    """Scrollable conversation of the active thread.

    Tracks what is on screen so an appended message mounts one widget
    instead of re-rendering the whole thread.
    """

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "New chat"
    ALLOW_MAXIMIZE = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._shown: tuple[Message, ...] = ()
        self._thread_id: str | None = None
        self._stream_widget: Static | None = None
        self._placeholder: Static | None = None

    def show_thread(self, thread_id: str | None, messages: tuple[Message, ...], empty_hint: str) -> None:
        """Render a thread's messages, appending when only new ones arrived."""
        same_thread = thread_id == self._thread_id
        if same_thread and messages[:len(self._shown)] == self._shown:
            new_messages = messages[len(self._shown):]
        else:
            self._clear_widgets()
            new_messages = messages

        self._thread_id = thread_id
        self._shown = messages

        if not messages:
            self._show_placeholder(empty_hint)
        elif self._placeholder is not None:
            self._placeholder.remove()
            self._placeholder = None

        for message in new_messages:
            self._render_message(message)

        self.border_subtitle = f"{len(messages)} messages" if messages else "New chat"
        self.scroll_end(animate=False)

    def show_partial(self, text: str) -> None:
        """Show or update the in-progress streamed reply."""
        if self._stream_widget is None:
            self._stream_widget = Static("", classes="chat-message assistant-message streaming", markup=False)
            self.mount(self._stream_widget)
        self._stream_widget.update(text or "...")
        self.scroll_end(animate=False)

    def clear_partial(self) -> None:
        if self._stream_widget is not None:
            self._stream_widget.remove()
            self._stream_widget = None

    def get_last_response(self) -> str | None:
        for message in reversed(self._shown):
            if message.role == "assistant":
                return message.content
        return None

    def _clear_widgets(self) -> None:
        self.remove_children()
        self._stream_widget = None
        self._placeholder = None
        self._shown = ()

    def _show_placeholder(self, hint: str) -> None:
        if self._placeholder is None:
            self._placeholder = Static(hint, classes="empty-hint")
            self.mount(self._placeholder)
        else:
            self._placeholder.update(hint)

    def _render_message(self, message: Message) -> None:
        if message.role == "user":
            header, border_class = "> You", "user-message"
            body = Static(message.content, classes="message-content", markup=False)
        else:
            header, border_class = "< Assistant", "assistant-message"
            body = Markdown(message.content, classes="message-content")

        container = ClickableMessage(content=message.content, classes=f"chat-message {border_class}")
        container.compose_add_child(Static(header, classes="message-header"))
        container.compose_add_child(body)
        if self._stream_widget is not None:
            self.mount(container, before=self._stream_widget)
        else:
            self.mount(container)


class StatusBar(Static):
    """One-line status: selected model, request state and the last error."""

    def show_status(self, model_name: str, status: str, error: str | None, streaming: bool) -> None:
        mode = "stream" if streaming else "buffered"
        parts = [f"[bold cyan]Model:[/] {escape(model_name)}", f"[dim]{mode}[/]"]
        if status:
            parts.append(f"[bold yellow]{escape(status)}[/]")
        if error:
            parts.append(f"[bold red]Error:[/] {escape(error)} [dim](ctrl+e to dismiss)[/]")
        self.update("  ".join(parts))
        self.set_class(bool(error), "-error")


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.highlight_cursor_line = False
        text_area.focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: terminals do not pass modifiers with Enter, so ctrl+j submits.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _cursor_at_start(self) -> bool:
        return self.query_one("#chat-input", TextArea).cursor_location == (0, 0)

    def _cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if not value or self.query_one("#send-btn", Button).disabled:
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def set_busy(self, busy: bool) -> None:
        """Disable submission while a reply is outstanding."""
        button = self.query_one("#send-btn", Button)
        button.disabled = busy
        button.label = "..." if busy else "Send"

    def focus_input(self) -> None:
        self.query_one("#chat-input", TextArea).focus()
