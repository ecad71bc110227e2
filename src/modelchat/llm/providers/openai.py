from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamingResponse, usage_dict

# Model-id prefixes of OpenAI reasoning models
REASONING_MODEL_PREFIXES = ("o1", "o3", "o4")


def is_reasoning_model(model: str) -> bool:
    """Check if a model is an OpenAI reasoning model.

    Reasoning models reject `temperature` and take `max_completion_tokens`
    instead of `max_tokens`; system instructions go in a 'developer' message.
    """
    return model.lower().startswith(REASONING_MODEL_PREFIXES)


def _to_openai_messages(messages: list[ChatMessage], reasoning: bool) -> list[dict[str, str]]:
    converted = []
    for msg in messages:
        role = msg.role
        if reasoning and role == "system":
            role = "developer"
        converted.append({"role": role, "content": msg.content})
    return converted


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Request parameters for reasoning (o-series) vs chat models
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
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
        reasoning = is_reasoning_model(model)
        params: dict[str, Any] = {
            "model": model,
            "messages": _to_openai_messages(messages, reasoning),
            **kwargs,
        }
        if reasoning:
            if max_tokens is not None:
                params["max_completion_tokens"] = max_tokens
        else:
            if temperature is not None:
                params["temperature"] = temperature
            if max_tokens is not None:
                params["max_tokens"] = max_tokens
        return params

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using OpenAI.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature (ignored for reasoning models)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content
        """
        model_to_use = model or self._model
        request_params = self._request_params(
            messages, model_to_use, temperature, max_tokens, **kwargs
        )

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = usage_dict(
                completion.usage.prompt_tokens,
                completion.usage.completion_tokens,
                completion.usage.total_tokens,
            )

        return LLMResponse(
            content=completion.choices[0].message.content or "",
            model=completion.model,
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
        """Generate a streaming chat completion using OpenAI.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature (ignored for reasoning models)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            StreamingResponse that yields text fragments and captures usage
        """
        model_to_use = model or self._model
        request_params = self._request_params(
            messages, model_to_use, temperature, max_tokens, **kwargs
        )
        request_params["stream"] = True
        request_params["stream_options"] = {"include_usage": True}

        response = StreamingResponse(self._stream_generator(request_params))
        self._current_stream_response = response
        return response

    async def _stream_generator(self, request_params: dict[str, Any]) -> AsyncIterator[str]:
        """Yield content deltas, recording usage from the final chunk."""
        stream = await self._client.chat.completions.create(**request_params)

        async for chunk in stream:
            if chunk.usage is not None:
                self._current_stream_response.set_usage(usage_dict(
                    chunk.usage.prompt_tokens,
                    chunk.usage.completion_tokens,
                    chunk.usage.total_tokens,
                ))
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    async def close(self) -> None:
        """Close the OpenAI client.

        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
