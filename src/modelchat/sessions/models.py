"""Data models for chat threads.

These models define the structure of a conversation independent of how
the store keeps them or how a front-end renders them.
"""

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..catalog import Model, Provider

PREVIEW_LENGTH = 30
PREVIEW_ELLIPSIS = "…"
NEW_CHAT_LABEL = "New chat"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """A single chat message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(description="Message author")
    content: str = Field(description="Message text")

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)


class ChatThread(BaseModel):
    """A conversation bound to one (provider, model) pair.

    The binding and creation time are fixed for the thread's lifetime.
    Messages are held as a tuple and replaced wholesale, so a snapshot
    handed out by the store can never change underneath its reader.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    provider: Provider
    model_id: str
    messages: tuple[Message, ...] = Field(default_factory=tuple)
    created_at: datetime = Field(default_factory=_utcnow)
    name: str | None = Field(default=None, description="Optional display label")

    @classmethod
    def for_model(cls, model: Model) -> "ChatThread":
        """Create an empty thread bound to a catalog model."""
        return cls(provider=model.provider, model_id=model.id)

    def is_bound_to(self, model: Model) -> bool:
        return self.provider == model.provider and self.model_id == model.id

    @property
    def user_message_count(self) -> int:
        return sum(1 for m in self.messages if m.role == "user")

    @property
    def preview(self) -> str:
        """Display label for listings.

        The explicit name wins. Otherwise the first user message is used,
        cut to PREVIEW_LENGTH characters (trailing spaces and punctuation
        dropped) with an ellipsis appended. Threads without a user message
        show NEW_CHAT_LABEL.
        """
        if self.name:
            return self.name
        first_user = next((m for m in self.messages if m.role == "user"), None)
        if first_user is None:
            return NEW_CHAT_LABEL
        return truncate_preview(first_user.content)


def truncate_preview(text: str, limit: int = PREVIEW_LENGTH) -> str:
    """Cut text to `limit` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    head = text[:limit].rstrip(" \t\n,.;:!?-")
    return f"{head}{PREVIEW_ELLIPSIS}"
