"""Terminal UI module for modelchat.

Provides a Textual-based TUI over the session store.

Module structure (each module hides a design decision):
- widgets.py: Thread list, conversation view, status line, input bar
- screens.py: Modal dialogs (model picker, rename)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palette
- app.py: Application orchestration (user interaction flow)
"""

from .app import ModelChatApp, run_textual_tui
from .screens import ModelPickerScreen, RenameScreen
from .widgets import ChatHistoryWidget, ChatInputBar, StatusBar, ThreadSidebar

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "ModelChatApp",
    "ModelPickerScreen",
    "RenameScreen",
    "StatusBar",
    "ThreadSidebar",
    "run_textual_tui",
]
