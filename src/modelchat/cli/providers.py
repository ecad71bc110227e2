"""Factory functions for CLI commands.

Centralizes creation of settings, the session store and dispatchers from
environment variables. Hides configuration details from command
implementations.
"""

from rich.console import Console

from ..catalog import default_catalog
from ..config import Settings
from ..dispatch import Dispatcher, create_dispatcher
from ..sessions import SessionStore, SwitchGuard

# Default console for output
_console = Console()


def get_settings() -> Settings:
    """Read settings from the environment (after .env has been loaded)."""
    return Settings.from_env()


def get_store(settings: Settings) -> SessionStore:
    """Create and initialize a session store.

    Environment variables:
        MODELCHAT_SWITCH_COOLDOWN: Thread-switch debounce window (default: 0.1)
    """
    store = SessionStore(
        catalog=default_catalog(),
        switch_guard=SwitchGuard(cooldown=settings.switch_cooldown),
    )
    store.init()
    return store


def get_dispatcher(
    settings: Settings,
    server_url: str | None = None,
    console: Console | None = None,
) -> Dispatcher:
    """Create a dispatcher: HTTP when a relay URL is known, else in-process.

    Args:
        settings: Application settings
        server_url: Relay URL overriding MODELCHAT_SERVER_URL
        console: Optional Rich console for output

    Environment variables:
        MODELCHAT_SERVER_URL: Relay base URL (default: unset, in-process)
        OPENAI_API_KEY / ANTHROPIC_API_KEY: Used by the in-process transport
    """
    con = console or _console
    url = server_url or settings.server_url
    if url:
        con.print(f"[dim]Dispatching through relay at {url}[/dim]")
        return create_dispatcher("http", settings, base_url=url)

    if not (settings.openai_api_key or settings.anthropic_api_key):
        con.print(
            "[yellow]Warning: neither OPENAI_API_KEY nor ANTHROPIC_API_KEY is set, "
            "requests will fail until one is configured[/yellow]"
        )
    return create_dispatcher("local", settings)
