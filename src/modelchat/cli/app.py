"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..catalog import Model, Provider, default_catalog
from ..chat import ChatController
from ..dispatch import Dispatcher
from ..errors import DispatchError
from ..log import setup_logging
from ..sessions import Message, SessionStore
from .providers import get_dispatcher, get_settings, get_store

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="modelchat",
    help="Chat with OpenAI and Anthropic models, one thread per model",
    no_args_is_help=True,
    add_completion=True,
)

console = Console()

CHAT_HELP = """[dim]Commands:
  /new [provider model]  start a fresh chat
  /model provider model  switch model (resumes its last chat)
  /list                  list chats, newest first
  /switch N              activate chat N from /list
  /rename N name         rename chat N
  /delete N              delete chat N
  /clear                 clear the active chat
  /stream                toggle streaming mode
  exit | quit | q        leave[/dim]"""


def _resolve_model(provider: str, model_id: str) -> Model:
    model = default_catalog().resolve(provider, model_id)
    if model is None:
        console.print(f"[red]Error: unknown model {provider}:{model_id}[/red]")
        console.print("[dim]Run 'modelchat models' to list available models[/dim]")
        raise typer.Exit(code=1)
    return model


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind host (default: MODELCHAT_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: MODELCHAT_PORT)"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (default: MODELCHAT_LOG_LEVEL)"
    ),
):
    """Run the HTTP relay (/api/chat, /api/simple-chat, /api/providers)."""
    import uvicorn

    from ..server import create_app

    settings = get_settings()
    level = log_level or settings.log_level
    setup_logging(level)

    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(f"[green]Serving modelchat relay on http://{bind_host}:{bind_port}[/green]")
    uvicorn.run(create_app(settings), host=bind_host, port=bind_port, log_level=level.lower())


@app.command()
def providers():
    """Show provider configuration status."""
    settings = get_settings()
    statuses = default_catalog().provider_statuses(settings.has_credential)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="cyan")
    table.add_column("Status", width=16)
    table.add_column("Models", style="dim")

    for status in statuses:
        label = "[green]configured[/green]" if status.status == "configured" else "[red]not configured[/red]"
        table.add_row(status.name, label, ", ".join(status.models))

    console.print(table)


@app.command()
def models():
    """List the models in the catalog."""
    catalog = default_catalog()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="cyan", width=10)
    table.add_column("Model ID", style="yellow")
    table.add_column("Name")
    table.add_column("Reasoning", width=9)

    for model in catalog:
        default = " [dim](default)[/dim]" if model == catalog.default else ""
        table.add_row(
            model.provider.value,
            model.id,
            model.name + default,
            "yes" if model.reasoning else "",
        )

    console.print(table)


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    provider: Provider = typer.Option(Provider.OPENAI, "--provider", "-p", help="Model provider"),
    model_id: str = typer.Option("gpt-4o", "--model", "-m", help="Model id"),
    stream: bool = typer.Option(False, "--stream", "-s", help="Stream the reply as it arrives"),
    server_url: str | None = typer.Option(
        None,
        "--server",
        help="Relay URL (default: MODELCHAT_SERVER_URL, else in-process)"
    ),
):
    """Send a single prompt and print the reply."""
    model = _resolve_model(provider.value, model_id)

    async def _ask():
        settings = get_settings()
        dispatcher = get_dispatcher(settings, server_url, console)
        messages = [Message.user(prompt)]
        try:
            if stream:
                async for event in dispatcher.stream(messages, model.provider, model.id):
                    if event.type == "status":
                        console.print(f"[dim]{event.text}[/dim]")
                    elif event.type == "chunk":
                        console.print(event.text, end="", markup=False, highlight=False)
                    elif event.type == "done":
                        console.print()
                    elif event.type == "error":
                        console.print(f"\n[red]Error: {event.text}[/red]")
                        raise typer.Exit(code=1)
            else:
                text = await dispatcher.complete(messages, model.provider, model.id)
                console.print(text, markup=False, highlight=False)
        except DispatchError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await dispatcher.close()

    asyncio.run(_ask())


def _print_threads(store: SessionStore) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=3)
    table.add_column("Chat")
    table.add_column("Model", style="cyan")
    table.add_column("Msgs", width=5)

    for i, thread in enumerate(store.list_threads(), 1):
        marker = "[bold green]*[/bold green] " if thread.id == store.current_chat_id else ""
        table.add_row(
            str(i),
            marker + thread.preview,
            store.model_name(thread.id) or thread.model_id,
            str(thread.user_message_count),
        )
    console.print(table)


def _thread_at(store: SessionStore, index: str) -> str | None:
    threads = store.list_threads()
    try:
        position = int(index) - 1
    except ValueError:
        return None
    if 0 <= position < len(threads):
        return threads[position].id
    return None


def _handle_command(store: SessionStore, controller: ChatController, line: str) -> None:
    """Apply a slash command to the store."""
    parts = line.split(maxsplit=2)
    command, args = parts[0], parts[1:]

    if command == "/new":
        if len(args) == 2:
            store.create_thread(args[0], args[1])
        else:
            store.create_thread()
        console.print(f"[dim]New chat with {store.selected_model.name}[/dim]")
    elif command == "/model" and len(args) == 2:
        model = store.catalog.resolve(args[0], args[1])
        if model is None:
            console.print(f"[red]Unknown model {args[0]}:{args[1]}[/red]")
            return
        store.select_model(model)
        console.print(f"[dim]Now chatting with {model.name}[/dim]")
        for message in store.current_messages:
            _print_message(message)
    elif command == "/list":
        _print_threads(store)
    elif command == "/switch" and args:
        thread_id = _thread_at(store, args[0])
        if thread_id is None:
            console.print("[red]No such chat[/red]")
            return
        store.set_active_thread(thread_id)
        for message in store.current_messages:
            _print_message(message)
    elif command == "/rename" and len(args) == 2:
        thread_id = _thread_at(store, args[0])
        if thread_id is None:
            console.print("[red]No such chat[/red]")
            return
        store.rename_thread(thread_id, args[1])
    elif command == "/delete" and args:
        thread_id = _thread_at(store, args[0])
        if thread_id is None:
            console.print("[red]No such chat[/red]")
            return
        store.delete_thread(thread_id)
        console.print(f"[dim]Deleted. Active model: {store.selected_model.name}[/dim]")
    elif command == "/clear":
        store.clear_active_thread()
        console.print("[dim]Chat cleared[/dim]")
    elif command == "/stream":
        controller.streaming = not controller.streaming
        console.print(f"[dim]Streaming {'on' if controller.streaming else 'off'}[/dim]")
    else:
        console.print(CHAT_HELP)


def _print_message(message: Message) -> None:
    label = "[bold yellow]You:[/bold yellow]" if message.role == "user" else "[bold green]Assistant:[/bold green]"
    console.print(label, end=" ")
    console.print(message.content, markup=False, highlight=False)


@app.command()
def chat(
    provider: Provider | None = typer.Option(None, "--provider", "-p", help="Start with this provider"),
    model_id: str | None = typer.Option(None, "--model", "-m", help="Start with this model id"),
    stream: bool = typer.Option(False, "--stream", "-s", help="Stream replies"),
    server_url: str | None = typer.Option(None, "--server", help="Relay URL"),
):
    """Interactive console chat with thread commands."""
    async def _chat(dispatcher: Dispatcher):
        store = get_store(settings)
        if provider is not None and model_id is not None:
            store.select_model(_resolve_model(provider.value, model_id))
        controller = ChatController(store, dispatcher, streaming=stream)

        console.print("[bold cyan]modelchat[/bold cyan]")
        console.print(f"[dim]Chatting with {store.selected_model.name}. Type /help for commands.[/dim]\n")

        while True:
            try:
                user_input = console.input("[bold yellow]You:[/bold yellow] ")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if not user_input.strip():
                continue
            if user_input.strip().lower() in ("exit", "quit", "q"):
                console.print("[dim]Goodbye![/dim]")
                break
            if user_input.startswith("/"):
                _handle_command(store, controller, user_input.strip())
                continue

            with console.status(f"[dim]{store.selected_model.name} is thinking...[/dim]"):
                replied = await controller.submit(user_input)
            if replied:
                _print_message(store.current_messages[-1])
            elif controller.error:
                console.print(f"[red]Error: {controller.error}[/red]")
                controller.dismiss_error()
            console.print()

    async def _run():
        dispatcher = get_dispatcher(settings, server_url, console)
        try:
            await _chat(dispatcher)
        finally:
            await dispatcher.close()

    settings = get_settings()
    asyncio.run(_run())


@app.command(name="tui")
def tui_command(
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Stream replies"),
    server_url: str | None = typer.Option(None, "--server", help="Relay URL"),
):
    """Launch the terminal chat interface."""
    async def _tui():
        from ..ui import run_textual_tui

        settings = get_settings()
        store = get_store(settings)
        dispatcher = get_dispatcher(settings, server_url, console)
        try:
            await run_textual_tui(store=store, dispatcher=dispatcher, streaming=stream)
        finally:
            await dispatcher.close()
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
