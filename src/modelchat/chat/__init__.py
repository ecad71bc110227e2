"""Chat interaction module for modelchat."""

from .controller import THINKING_STATUS, ChatController

__all__ = ["THINKING_STATUS", "ChatController"]
