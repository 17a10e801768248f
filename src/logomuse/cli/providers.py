"""Component factory functions for the CLI.

Centralizes creation of the conversation store, model channel and
persona catalog from settings. Hides configuration details from command
implementations.
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..config import Settings
from ..conversations import ConversationStore, create_conversation_store
from ..llm import AssistantChannel, create_llm_provider
from ..personas import (
    PersonaCatalog,
    PersonaConfig,
    config_source_from_location,
    fetch_persona_config,
)

_console = Console()


def configure_logging(settings: Settings, console: Console | None = None) -> None:
    """Route logging through Rich at the configured level."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console or _console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def get_store(settings: Settings) -> ConversationStore:
    """Create the conversation store selected by LOGOMUSE_STORE."""
    backend = settings.store_backend
    if backend == "sqlite":
        return create_conversation_store("sqlite", path=settings.sqlite_path)
    if backend == "firestore":
        return create_conversation_store("firestore", project=settings.firestore_project)
    return create_conversation_store(backend)


def get_channel(settings: Settings, console: Console | None = None) -> AssistantChannel:
    """Create the assistant channel for the configured LLM provider.

    Raises:
        SystemExit: If the provider is unknown or its API key is missing
    """
    con = console or _console
    provider = settings.llm_provider

    if provider == "gemini":
        if not settings.gemini_api_key:
            con.print("[red]Error: GEMINI_API_KEY not set in environment[/red]")
            raise typer.Exit(code=1)
        llm = create_llm_provider("gemini", api_key=settings.gemini_api_key, model=settings.gemini_model)

    elif provider == "openai":
        if not settings.openai_api_key:
            con.print("[red]Error: OPENAI_API_KEY not set in environment[/red]")
            raise typer.Exit(code=1)
        llm = create_llm_provider("openai", api_key=settings.openai_api_key, model=settings.openai_model)

    else:
        con.print(f"[red]Error: Unknown LLM provider: {provider}[/red]")
        raise typer.Exit(code=1)

    return AssistantChannel(llm, temperature=settings.temperature)


def get_catalog(settings: Settings) -> PersonaCatalog:
    """Build a catalog with the compiled-in descriptions.

    Overrides are applied later by ``load_persona_overrides``.
    """
    return PersonaCatalog(PersonaConfig(enable_competitor=settings.enable_competitor_persona))


async def load_persona_overrides(catalog: PersonaCatalog, settings: Settings) -> None:
    """Fetch persona overrides once and apply them to the catalog."""
    source = config_source_from_location(settings.persona_config_location)
    if source is None:
        return
    catalog.apply(await fetch_persona_config(
        source,
        enable_competitor=settings.enable_competitor_persona,
        timeout=settings.persona_config_timeout,
    ))
