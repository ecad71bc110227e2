from collections.abc import AsyncIterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StreamingResponse:
    """Async iterator over text fragments of a provider reply.

    Token usage becomes available once iteration has finished.

    Usage:
        stream = await provider.chat_completion_stream(messages)
        async for fragment in stream:
            print(fragment, end="")
        print(stream.usage)
    """

    def __init__(self, async_iter: AsyncIterator[str]):
        self._iter = async_iter
        self._usage: dict[str, int] | None = None

    @property
    def usage(self) -> dict[str, int] | None:
        """Token usage (set by the provider when the stream ends)."""
        return self._usage

    def set_usage(self, usage: dict[str, int]) -> None:
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Close the underlying generator, releasing the provider stream."""
        aclose = getattr(self._iter, "aclose", None)
        if aclose is not None:
            await aclose()


class ChatMessage(BaseModel):
    """A message in the provider wire format."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class LLMResponse(BaseModel):
    """Completed response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )


def usage_dict(prompt_tokens: int, completion_tokens: int, total: Any = None) -> dict[str, int]:
    """Normalize provider token counts into one shape."""
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": total if total is not None else prompt_tokens + completion_tokens,
    }
