"""Provider factory functions for CLI.

Centralizes creation of the config, assistant catalog and thread service.
Hides configuration details from command implementations.
"""

import typer
from rich.console import Console

from ..client import ThreadService, create_thread_service
from ..config import EngineConfig, load_assistant_catalog, load_config
from ..conversation import AssistantProfile
from ..errors import ConfigError

# Default console for output
_console = Console()


def get_config(console: Console | None = None) -> EngineConfig:
    """Load engine configuration from the environment.

    Raises:
        SystemExit: If the configuration is missing or invalid
    """
    con = console or _console
    try:
        return load_config()
    except ConfigError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def get_catalog(console: Console | None = None) -> list[AssistantProfile]:
    """Load the assistant catalog.

    Raises:
        SystemExit: If no assistant is configured
    """
    con = console or _console
    catalog = load_assistant_catalog()
    if not catalog:
        con.print(
            "[red]Error: no assistant configured. "
            "Set OPENAI_ASSISTANT_ID or OPENAI_ASSISTANT_ID_1..5[/red]"
        )
        raise typer.Exit(code=1)
    return catalog


def get_thread_service(config: EngineConfig) -> ThreadService:
    """Create the thread service from a loaded config."""
    return create_thread_service("openai", **config.service_config())


def find_assistant(catalog: list[AssistantProfile], selector: str) -> AssistantProfile | None:
    """Find an assistant by 1-based catalog position or by name (case-insensitive)."""
    selector = selector.strip()
    if selector.isdigit():
        index = int(selector)
        return catalog[index - 1] if 1 <= index <= len(catalog) else None
    for profile in catalog:
        if profile.name.lower() == selector.lower():
            return profile
    return None
