"""Wire models for dispatcher requests, responses and stream events.

Field names on the wire use camelCase (`modelId`); Python code uses
snake_case. Both are accepted when parsing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..catalog import Provider
from ..sessions import Message

StreamEventType = Literal["status", "chunk", "done", "error"]

CONNECTING_STATUS = "Connecting to AI model..."


class DispatchRequest(BaseModel):
    """Body of a chat request: the full conversation and its model binding."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[Message] = Field(description="Conversation so far, oldest first")
    provider: Provider = Field(description="Provider to route to")
    model_id: str = Field(alias="modelId", min_length=1, description="Provider model id")


class StreamEvent(BaseModel):
    """One frame of a streaming reply.

    - status: sent once at stream start
    - chunk: incremental fragment, concatenated in arrival order
    - done: terminal, carries the full accumulated text
    - error: terminal, mutually exclusive with done
    """

    model_config = ConfigDict(frozen=True)

    type: StreamEventType
    text: str = ""

    @property
    def terminal(self) -> bool:
        return self.type in ("done", "error")

    @classmethod
    def status(cls, text: str = CONNECTING_STATUS) -> "StreamEvent":
        return cls(type="status", text=text)

    @classmethod
    def chunk(cls, text: str) -> "StreamEvent":
        return cls(type="chunk", text=text)

    @classmethod
    def done(cls, text: str) -> "StreamEvent":
        return cls(type="done", text=text)

    @classmethod
    def error(cls, text: str) -> "StreamEvent":
        return cls(type="error", text=text)


class BufferedResponse(BaseModel):
    """Successful buffered reply."""

    text: str


class ErrorResponse(BaseModel):
    """Failure body returned with a non-2xx status."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    details: str | None = None
    provider: str | None = None
    model_id: str | None = Field(default=None, alias="modelId")
