"""Factory for creating dispatchers."""

from typing import Any

from ..config import Settings
from .base import Dispatcher


def create_dispatcher(
    transport: str = "local",
    settings: Settings | None = None,
    **kwargs: Any
) -> Dispatcher:
    """Create a dispatcher.

    Args:
        transport: "local" (provider SDKs in process) or "http" (relay)
        settings: Application settings (read from the environment if omitted)
        **kwargs: Transport-specific configuration
            For local:
                - provider_factory: callable building an LLMProvider
            For http:
                - base_url: str (default: settings.server_url)
                - client: httpx.AsyncClient
                - timeout: float | None

    Returns:
        Dispatcher instance

    Raises:
        ValueError: If transport type is not supported
    """
    settings = settings or Settings.from_env()

    if transport == "local":
        from .local import LocalDispatcher
        return LocalDispatcher(settings, **kwargs)

    elif transport == "http":
        from .remote import HttpDispatcher
        kwargs.setdefault("base_url", settings.server_url or f"http://{settings.host}:{settings.port}")
        return HttpDispatcher(**kwargs)

    raise ValueError(
        f"Unsupported dispatcher transport: {transport}. "
        f"Supported transports: local, http"
    )
