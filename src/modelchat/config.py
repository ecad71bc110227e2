"""Application configuration.

Settings are read from environment variables. The CLI loads a `.env` file
first (python-dotenv), so values there behave like exported variables.

Environment variables:
    OPENAI_API_KEY: OpenAI API key (provider disabled when unset)
    ANTHROPIC_API_KEY: Anthropic API key (provider disabled when unset)
    MODELCHAT_HOST: Relay server bind host (default: 127.0.0.1)
    MODELCHAT_PORT: Relay server port (default: 8000)
    MODELCHAT_LOG_LEVEL: Logging level (default: INFO)
    MODELCHAT_SWITCH_COOLDOWN: Thread-switch debounce window in seconds (default: 0.1)
    MODELCHAT_SERVER_URL: Relay URL for remote dispatch (default: unset, in-process)
"""

import os

from pydantic import BaseModel, Field

from .catalog import Provider


class Settings(BaseModel):
    """Runtime settings for the store, dispatcher and relay."""

    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    host: str = Field(default="127.0.0.1", description="Relay bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Relay port")
    log_level: str = Field(default="INFO", description="Logging level")
    switch_cooldown: float = Field(
        default=0.1,
        ge=0.0,
        description="Seconds after a thread switch during which new switches are dropped"
    )
    server_url: str | None = Field(
        default=None,
        description="Relay base URL; when set, dispatch goes over HTTP"
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        values: dict[str, object] = {
            "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY") or None,
            "host": os.getenv("MODELCHAT_HOST", "127.0.0.1"),
            "port": os.getenv("MODELCHAT_PORT", "8000"),
            "log_level": os.getenv("MODELCHAT_LOG_LEVEL", "INFO"),
            "switch_cooldown": os.getenv("MODELCHAT_SWITCH_COOLDOWN", "0.1"),
            "server_url": os.getenv("MODELCHAT_SERVER_URL") or None,
        }
        return cls(**values)

    def api_key_for(self, provider: Provider | str) -> str | None:
        """Return the API key configured for a provider, if any."""
        provider_enum = Provider(provider)
        if provider_enum == Provider.OPENAI:
            return self.openai_api_key
        return self.anthropic_api_key

    def has_credential(self, provider: Provider | str) -> bool:
        return bool(self.api_key_for(provider))


def mask_key(key: str | None) -> str | None:
    """Preview a secret by its first and last three characters."""
    if not key:
        return None
    return f"{key[:3]}...{key[-3:]}"
