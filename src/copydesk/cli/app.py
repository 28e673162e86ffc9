"""Main CLI application using Typer."""
import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ..conversation import (
    AssistantProfile,
    ContentPhase,
    ConversationOrchestrator,
    MessageRole,
    OrchestratorEvent,
    RunScheduler,
    SessionManager,
    ThreadMessage,
)
from .providers import find_assistant, get_catalog, get_config, get_thread_service

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="copydesk",
    help="AI-assisted content editing over assistant threads",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

CHAT_HELP = """\
[bold]Commands[/bold]
  /phase <name>        Move to a phase (goals, narrative, structure, content, conclusion, review)
  /assistant <n|name>  Switch assistant (starts a new thread)
  /draft               Show the current draft
  /load <file>         Replace the current draft with a file's content
  /accept              Apply an assistant draft held back to protect your edits
  /history             Reload the thread from the service
  /help                Show this help
  /quit                Leave the chat"""


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logs from the engine"
    )
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    # HTTP client chatter is only useful when debugging transport problems
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.command()
def assistants():
    """List the configured assistants."""
    catalog = get_catalog(console)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Assistant ID", style="dim")

    for i, profile in enumerate(catalog, 1):
        table.add_row(str(i), profile.name, profile.description, profile.id)

    console.print(table)


def render_message(message: ThreadMessage) -> None:
    """Print one message: discussion as a chat bubble, draft as markdown."""
    payload = message.payload
    is_user = message.role == MessageRole.USER
    timestamp = message.created_at.astimezone().strftime("%H:%M:%S")

    if payload.discussion:
        console.print(Panel(
            payload.discussion,
            title=f"{'You' if is_user else 'Assistant'} [dim]{timestamp}[/dim]",
            title_align="right" if is_user else "left",
            border_style="blue" if is_user else "green",
        ))
    if payload.draft and not is_user:
        console.print("[dim]Draft updated (/draft to view)[/dim]")


def render_draft(content: str) -> None:
    if not content:
        console.print("[dim]No content draft available yet. Start a discussion to generate content.[/dim]")
        return
    console.print(Panel(Markdown(content), title="Draft", border_style="magenta"))


async def _handle_command(
    command: str,
    argument: str,
    orchestrator: ConversationOrchestrator,
    catalog: list[AssistantProfile]
) -> bool:
    """Run a slash command. Returns False when the chat should end."""
    if command in ("/quit", "/exit"):
        return False

    if command == "/help":
        console.print(CHAT_HELP)
    elif command == "/draft":
        render_draft(orchestrator.current_content)
    elif command == "/accept":
        if orchestrator.accept_pending_draft():
            console.print("[green]Assistant draft applied[/green]")
        else:
            console.print("[dim]No pending draft[/dim]")
    elif command == "/load":
        path = Path(argument).expanduser()
        if not path.is_file():
            console.print(f"[red]Error: no such file: {argument}[/red]")
        else:
            orchestrator.set_current_content(path.read_text(encoding="utf-8"))
            console.print(f"[green]Draft loaded from {path}[/green]")
    elif command == "/phase":
        try:
            phase = ContentPhase.from_string(argument)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            return True
        console.print(f"[dim]Phase: {phase.label}[/dim]")
        with console.status("Waiting for assistant..."):
            reply = await orchestrator.set_phase(phase)
        if reply:
            render_message(reply)
    elif command == "/assistant":
        profile = find_assistant(catalog, argument)
        if profile is None:
            console.print(f"[red]Error: unknown assistant '{argument}'[/red]")
            return True
        with console.status(f"Switching to {profile.name}..."):
            switched = await orchestrator.set_assistant(profile)
        if switched:
            console.print(f"[green]Now working with {profile.name} on a new thread[/green]")
    elif command == "/history":
        with console.status("Loading thread..."):
            messages = await orchestrator.refresh_history()
        for message in reversed(messages):
            render_message(message)
    else:
        console.print(f"[yellow]Unknown command: {command} (try /help)[/yellow]")
    return True


@app.command()
def chat(
    assistant: str = typer.Option(
        "1",
        "--assistant",
        "-a",
        help="Assistant to start with (catalog number or name)"
    ),
    phase: str | None = typer.Option(
        None,
        "--phase",
        "-p",
        help="Kick off with a phase prompt (e.g. goals)"
    ),
    draft: Path | None = typer.Option(
        None,
        "--draft",
        "-d",
        exists=True,
        dir_okay=False,
        help="File with an existing draft to start from"
    )
):
    """Start an interactive content-editing conversation."""
    config = get_config(console)
    catalog = get_catalog(console)
    profile = find_assistant(catalog, assistant)
    if profile is None:
        console.print(f"[red]Error: unknown assistant '{assistant}'[/red]")
        raise typer.Exit(code=1)

    async def _chat():
        service = get_thread_service(config)
        scheduler = RunScheduler(
            service,
            poll_interval=config.poll_interval,
            timeout=config.run_timeout
        )
        session = SessionManager(service, scheduler=scheduler)
        orchestrator = ConversationOrchestrator(
            session,
            assistant=profile,
            draft_policy=config.draft_policy
        )

        def on_event(event: OrchestratorEvent) -> None:
            if event == OrchestratorEvent.ERROR and orchestrator.last_error:
                console.print(f"[red]Error: {orchestrator.last_error}[/red]")
            elif event == OrchestratorEvent.DRAFT_CONFLICT:
                console.print(
                    "[yellow]You edited the draft while the assistant was working; "
                    "its version was kept aside (/accept to apply it)[/yellow]"
                )

        orchestrator.subscribe(on_event)

        async with service:
            with console.status("Creating thread..."):
                thread_id = await orchestrator.start()
            if thread_id is None:
                raise typer.Exit(code=1)

            console.print(Panel(
                f"[bold]{profile.name}[/bold]: {profile.description}\n[dim]Thread: {thread_id}[/dim]",
                title="copydesk",
                border_style="cyan",
            ))
            console.print("[dim]Type a message, or /help for commands.[/dim]")

            if draft:
                orchestrator.set_current_content(draft.read_text(encoding="utf-8"))
            if phase:
                await _handle_command("/phase", phase, orchestrator, catalog)

            while True:
                try:
                    text = await asyncio.to_thread(console.input, "[bold blue]you>[/bold blue] ")
                except (EOFError, KeyboardInterrupt):
                    break

                text = text.strip()
                if not text:
                    continue

                if text.startswith("/"):
                    command, _, argument = text.partition(" ")
                    if not await _handle_command(command.lower(), argument.strip(), orchestrator, catalog):
                        break
                    continue

                with console.status("Waiting for assistant..."):
                    reply = await orchestrator.send_message(text)
                if reply:
                    render_message(reply)

        console.print("[dim]Goodbye.[/dim]")

    asyncio.run(_chat())


if __name__ == "__main__":
    app()
