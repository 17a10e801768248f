"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..conversations import MessageRole
from ..personas import Persona
from ..session import ChatSessionManager, SessionState
from .providers import (
    configure_logging,
    get_catalog,
    get_channel,
    get_store,
    load_persona_overrides,
)

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="logomuse",
    help="Brainstorm logo and branding ideas with persona-driven AI assistants",
    no_args_is_help=True,
    add_completion=True,
)
conversations_app = typer.Typer(help="Manage saved conversations", no_args_is_help=True)
app.add_typer(conversations_app, name="conversations")

console = Console()

CHAT_HELP = """[dim]Commands:
  /persona <name>        switch persona (starts a new conversation)
  /new [title]           start a new conversation
  /list                  list conversations
  /open <n>              open conversation number n from /list
  /rename <n> <title>    rename conversation n
  /delete <n>            delete conversation n
  /help                  show this help
  exit, quit, q          leave[/dim]"""


def _settings() -> Settings:
    settings = Settings.from_env()
    configure_logging(settings, console)
    return settings


class StreamPrinter:
    """Session listener that prints replies as fragments arrive."""

    def __init__(self, out: Console):
        self._out = out
        self._printed = 0
        self._streaming = False

    def __call__(self, state: SessionState) -> None:
        if state.is_streaming and state.timeline and state.timeline[-1].role is MessageRole.MODEL:
            text = state.timeline[-1].text
            if not self._streaming:
                self._streaming = True
                self._printed = 0
                self._out.print("[bold green]Assistant:[/bold green] ", end="")
            if len(text) > self._printed:
                self._out.print(text[self._printed:], end="", markup=False, highlight=False)
                self._printed = len(text)
        elif self._streaming and not state.is_streaming:
            self._streaming = False
            self._out.print("\n")


def _print_timeline(state: SessionState) -> None:
    for message in state.timeline:
        if message.role is MessageRole.USER:
            console.print("[bold yellow]You:[/bold yellow] ", end="")
        else:
            console.print("[bold green]Assistant:[/bold green] ", end="")
        console.print(message.text, markup=False, highlight=False)
    console.print()


def _print_conversations(state: SessionState) -> None:
    table = Table(show_header=True, box=None)
    table.add_column("#", style="bold cyan", width=4)
    table.add_column("Title")
    table.add_column("Created", style="dim")
    for i, conversation in enumerate(state.conversations, 1):
        marker = " *" if conversation.id == state.active_conversation_id else ""
        table.add_row(
            str(i),
            f"{conversation.title}{marker}",
            conversation.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def _print_error(state: SessionState) -> None:
    if state.last_error:
        console.print(f"[red]{state.last_error}[/red]")


def _pick(state: SessionState, arg: str) -> str | None:
    try:
        return state.conversations[int(arg) - 1].id
    except (ValueError, IndexError):
        console.print(f"[red]No conversation number {arg!r}; see /list[/red]")
        return None


async def _handle_command(manager: ChatSessionManager, line: str) -> None:
    command, _, rest = line[1:].partition(" ")
    rest = rest.strip()
    state = manager.state

    if command == "help":
        console.print(CHAT_HELP)
    elif command == "persona":
        try:
            persona = Persona(rest.lower())
        except ValueError:
            names = ", ".join(p.value for p in manager.catalog.available())
            console.print(f"[red]Unknown persona {rest!r}. Available: {names}[/red]")
            return
        if await manager.select_persona(persona):
            console.print(f"[dim]{manager.catalog.description_for(persona)}[/dim]")
            _print_timeline(state)
    elif command == "new":
        if await manager.start_new_conversation(rest or "New Conversation"):
            _print_timeline(state)
    elif command == "list":
        if await manager.refresh_conversations():
            _print_conversations(state)
    elif command == "open":
        conversation_id = _pick(state, rest)
        if conversation_id and await manager.select_conversation(conversation_id):
            _print_timeline(state)
    elif command == "rename":
        number, _, title = rest.partition(" ")
        conversation_id = _pick(state, number)
        if conversation_id and await manager.rename_conversation(conversation_id, title):
            console.print("[dim]Renamed.[/dim]")
    elif command == "delete":
        conversation_id = _pick(state, rest)
        if conversation_id and await manager.delete_conversation(conversation_id):
            console.print("[dim]Deleted.[/dim]")
            _print_timeline(state)
    else:
        console.print(f"[red]Unknown command /{command}; type /help[/red]")

    _print_error(state)


@app.command()
def chat(
    persona: Persona = typer.Option(
        Persona.CREATIVE,
        "--persona",
        "-p",
        help="Persona to start with"
    )
):
    """Interactive brainstorming chat with a persona-driven assistant."""
    async def _chat():
        settings = _settings()
        channel = get_channel(settings, console)
        store = get_store(settings)
        catalog = get_catalog(settings)

        if not catalog.is_available(persona):
            console.print(f"[red]Error: persona '{persona.value}' is not enabled[/red]")
            raise typer.Exit(code=1)

        # Descriptions start as defaults and are swapped when the fetch lands
        overrides = asyncio.create_task(load_persona_overrides(catalog, settings))
        manager = ChatSessionManager(store, channel, catalog, persona=persona)
        printer = StreamPrinter(console)
        manager.add_listener(printer)

        try:
            await store.connect()

            if not await manager.initialize():
                _print_error(manager.state)
                raise typer.Exit(code=1)

            console.print(f"[bold cyan]Logomuse[/bold cyan] [dim]({persona.value} persona)[/dim]")
            console.print("[dim]Type /help for commands, 'exit' to leave[/dim]\n")
            _print_timeline(manager.state)

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in ('exit', 'quit', 'q'):
                        console.print("[dim]Goodbye![/dim]")
                        break

                    if user_input.startswith("/"):
                        await _handle_command(manager, user_input.strip())
                        continue

                    await manager.send(user_input)
                    _print_error(manager.state)

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

        finally:
            overrides.cancel()
            manager.remove_listener(printer)
            await store.disconnect()
            await channel.provider.close()

    asyncio.run(_chat())


@app.command()
def personas():
    """List the available personas."""
    async def _personas():
        settings = _settings()
        catalog = get_catalog(settings)
        await load_persona_overrides(catalog, settings)

        table = Table(show_header=False, box=None)
        table.add_column("Persona", style="bold cyan", width=12)
        table.add_column("Description")
        for p in catalog.available():
            table.add_row(p.value, catalog.description_for(p))
        console.print(table)

    asyncio.run(_personas())


@conversations_app.command("list")
def list_conversations():
    """List saved conversations, newest first."""
    async def _list():
        store = get_store(_settings())
        try:
            await store.connect()
            conversations = await store.list_conversations()
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

        if not conversations:
            console.print("[dim]No conversations yet.[/dim]")
            return

        table = Table(show_header=True, box=None)
        table.add_column("ID", style="dim")
        table.add_column("Title", style="bold")
        table.add_column("Created")
        for conversation in conversations:
            table.add_row(
                conversation.id,
                conversation.title,
                conversation.created_at.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)

    asyncio.run(_list())


@conversations_app.command("rename")
def rename_conversation(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    title: str = typer.Argument(..., help="New title"),
):
    """Rename a saved conversation."""
    async def _rename():
        if not title.strip():
            console.print("[red]Error: title must not be empty[/red]")
            raise typer.Exit(code=1)

        store = get_store(_settings())
        try:
            await store.connect()
            await store.rename_conversation(conversation_id, title.strip())
            console.print("[green]Conversation renamed.[/green]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_rename())


@conversations_app.command("delete")
def delete_conversation(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    )
):
    """Delete a saved conversation and all its messages."""
    async def _delete():
        if not yes:
            confirm = typer.confirm("Are you sure you want to delete this conversation?")
            if not confirm:
                console.print("[dim]Aborted.[/dim]")
                return

        store = get_store(_settings())
        try:
            await store.connect()
            await store.delete_conversation(conversation_id)
            console.print("[green]Conversation deleted.[/green]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_delete())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
