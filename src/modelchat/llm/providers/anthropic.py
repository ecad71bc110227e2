"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async chat completions.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamingResponse, usage_dict

DEFAULT_MAX_TOKENS = 4096
THINKING_BUDGET_TOKENS = 12000

# Model-id fragments of Claude models with extended thinking
THINKING_MODEL_MARKERS = ("claude-3-7",)


def supports_thinking(model: str) -> bool:
    """Check if a Claude model runs with extended thinking enabled."""
    return any(marker in model for marker in THINKING_MODEL_MARKERS)


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling)
    - Extended thinking for models that support it
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20240620",
        base_url: str | None = None,
        thinking_budget: int | None = THINKING_BUDGET_TOKENS,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use
            base_url: Optional custom API base URL
            thinking_budget: Token budget for extended thinking (None disables it)
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._thinking_budget = thinking_budget
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        return self._model

    def _request_params(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float | None,
        max_tokens: int | None,
        **kwargs: Any
    ) -> dict[str, Any]:
        # Anthropic takes the system prompt as a separate parameter
        system_message = None
        anthropic_messages = []
        for msg in messages:
            if msg.role == "system":
                system_message = msg.content
            else:
                anthropic_messages.append({"role": msg.role, "content": msg.content})

        params: dict[str, Any] = {
            "model": model,
            "messages": anthropic_messages,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            **kwargs
        }
        if system_message:
            params["system"] = system_message

        if self._thinking_budget and supports_thinking(model) and "thinking" not in params:
            params["thinking"] = {"type": "enabled", "budget_tokens": self._thinking_budget}
            # max_tokens must exceed the thinking budget; temperature must stay default
            params["max_tokens"] = max(params["max_tokens"], self._thinking_budget + DEFAULT_MAX_TOKENS)
        elif temperature is not None:
            params["temperature"] = temperature

        return params

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature (ignored when thinking is on)
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with generated content; thinking blocks are dropped
        """
        model_to_use = model or self._model
        request_params = self._request_params(
            messages, model_to_use, temperature, max_tokens, **kwargs
        )

        response = await self._client.messages.create(**request_params)

        usage = None
        if response.usage:
            usage = usage_dict(response.usage.input_tokens, response.usage.output_tokens)

        content = ""
        for block in response.content:
            if getattr(block, "type", None) == "text":
                content += block.text

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage
        )

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature (ignored when thinking is on)
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            StreamingResponse that yields text fragments and captures usage
        """
        model_to_use = model or self._model
        request_params = self._request_params(
            messages, model_to_use, temperature, max_tokens, **kwargs
        )

        response = StreamingResponse(self._stream_generator(request_params))
        self._current_stream_response = response
        return response

    async def _stream_generator(self, request_params: dict[str, Any]) -> AsyncIterator[str]:
        """Yield text deltas and capture usage from message events."""
        input_tokens = 0
        output_tokens = 0

        async with self._client.messages.stream(**request_params) as stream:
            async for event in stream:
                event_type = getattr(event, "type", None)
                if event_type == "message_start":
                    input_tokens = event.message.usage.input_tokens
                elif event_type == "message_delta":
                    if getattr(event, "usage", None) is not None:
                        output_tokens = event.usage.output_tokens
                elif event_type == "content_block_delta":
                    # thinking_delta blocks carry .thinking, not .text
                    if getattr(event.delta, "type", None) == "text_delta":
                        yield event.delta.text

            self._current_stream_response.set_usage(usage_dict(input_tokens, output_tokens))

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
