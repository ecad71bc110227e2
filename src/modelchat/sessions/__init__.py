"""Chat session module for modelchat.

Provides the in-memory multi-thread session store.
"""

from .guard import SwitchGuard
from .models import NEW_CHAT_LABEL, ChatThread, Message, truncate_preview
from .store import SessionStore

__all__ = [
    "NEW_CHAT_LABEL",
    "ChatThread",
    "Message",
    "SessionStore",
    "SwitchGuard",
    "truncate_preview",
]
