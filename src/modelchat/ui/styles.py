"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Layout: thread sidebar on the left, conversation on the right,
status line and input across the bottom.
"""

APP_CSS = """
Screen {
    layout: grid;
    grid-size: 2 2;
    grid-columns: 34 1fr;
    grid-rows: 1fr auto;
    background: $background;
}

/* Thread sidebar */
#thread-sidebar {
    height: 100%;
    background: $panel;
    border: round $secondary 60%;
    border-title-color: $secondary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;

    &:focus {
        border: round $secondary;
    }
}

.thread-item {
    height: auto;
    padding: 0 1;
    background: transparent;

    &.-active .thread-title {
        color: $accent;
        text-style: bold;
    }
}

.thread-title {
    width: 100%;
}

.thread-subtitle {
    width: 100%;
    color: $text-muted;
}

/* Conversation */
#chat-history {
    height: 100%;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

.empty-hint {
    width: 100%;
    margin: 2 0;
    text-align: center;
    color: $text-muted;
}

.chat-message {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
}

.user-message {
    border-left: thick $accent;
    background: $accent 5%;
}

.assistant-message {
    border-left: thick $success;
    background: $success 5%;

    &.streaming {
        border-left: thick $warning;
        color: $text-muted;
    }
}

.message-header {
    text-style: bold;
    color: $text-muted;
}

.message-content {
    height: auto;
    margin: 0;
    padding: 0;
}

/* Bottom bar: status + input */
#bottom-bar {
    column-span: 2;
    height: auto;
    padding: 0 1 1 1;
    background: $panel;
    border-top: solid $border;
}

#status-bar {
    height: 1;
    padding: 0 1;
    margin-bottom: 1;
    background: $surface;

    &.-error {
        background: $error 15%;
    }
}

ChatInputBar {
    height: 5;
    border: round $primary 60%;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;
}

#send-btn {
    width: 10;
    min-width: 10;
    height: 3;
    margin: 0 1;
}

Markdown {
    margin: 0;
    padding: 0;
}

OptionList {
    height: auto;
    max-height: 18;
    border: none;
    background: transparent;
}
"""
