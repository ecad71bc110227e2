"""Data models for the model catalog.

A Model names an addressable (provider, model id) pair. The catalog of
models is fixed at startup; nothing here is discovered dynamically.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Provider(str, Enum):
    """LLM providers the client can talk to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @property
    def display_name(self) -> str:
        """Human-readable provider name."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Provider.OPENAI: "OpenAI",
    Provider.ANTHROPIC: "Anthropic",
}


class Model(BaseModel):
    """A (provider, model id) pair with a display name."""

    model_config = ConfigDict(frozen=True)

    provider: Provider = Field(description="Provider serving this model")
    id: str = Field(min_length=1, description="Provider-side model identifier")
    name: str = Field(description="Human-readable display name")
    reasoning: bool = Field(
        default=False,
        description="Model runs with a reasoning/extended-thinking mode"
    )

    @property
    def key(self) -> str:
        """Registry key in 'provider:id' form."""
        return f"{self.provider.value}:{self.id}"

    def matches(self, provider: Provider | str, model_id: str) -> bool:
        """Check whether this model is bound to the given provider and id."""
        return self.provider == Provider(provider) and self.id == model_id


class ProviderStatus(BaseModel):
    """Configuration status of one provider, as reported to clients."""

    id: Provider
    name: str
    status: Literal["configured", "not_configured"]
    models: list[str] = Field(default_factory=list)
