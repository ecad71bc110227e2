"""
modelchat: a chat client for OpenAI and Anthropic models.

Chat threads live in an in-memory session store, each bound to one
provider+model pair; a dispatcher sends a thread's messages to its model.
"""

__version__ = "0.1.0"

from .catalog import Model, ModelCatalog, Provider, default_catalog
from .sessions import ChatThread, Message, SessionStore

__all__ = [
    "ChatThread",
    "Message",
    "Model",
    "ModelCatalog",
    "Provider",
    "SessionStore",
    "default_catalog",
]
