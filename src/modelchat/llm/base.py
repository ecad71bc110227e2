from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse, StreamingResponse


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This module hides which provider SDK serves a request.
    Implementations handle provider-specific details like:
    - API client setup and authentication
    - Request/response format conversion
    - Model-specific request parameters (reasoning models, extended thinking)

    Failures are raised as the SDK raised them; callers decide how to
    surface them. Nothing here retries.

    Supports async context manager protocol for resource cleanup:
        async with provider:
            response = await provider.chat_completion(messages)
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model used when a call does not name one."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a complete chat reply.

        Args:
            messages: Conversation history, oldest first
            model: Model to use (None uses the provider's default)
            temperature: Sampling temperature (None uses the API default)
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse containing generated content and metadata
        """

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a chat reply as incremental text fragments.

        Args:
            messages: Conversation history, oldest first
            model: Model to use (None uses the provider's default)
            temperature: Sampling temperature (None uses the API default)
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            StreamingResponse yielding fragments in arrival order
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Close the provider on exit.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
