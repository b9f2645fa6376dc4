"""
Chat CLI

Command-line interface for the chat service.

Usage:
    chatapp chat                 # Interactive REPL mode
    chatapp sessions             # List saved sessions
    chatapp export <session-id>  # Print a saved session as JSON
    chatapp serve                # Run the HTTP API with uvicorn
"""

import asyncio
import json
import logging
import sys

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from chatapp import __version__
from chatapp.config import get_settings
from chatapp.context import AppContext, build_context
from chatapp.errors import ChatError
from chatapp.models.conversation import Message, display_sender

console = Console()

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit", ":q"}

REPL_HELP = (
    "[bold]/new[/bold] start a new chat   [bold]/history[/bold] list saved chats   "
    "[bold]/load <id>[/bold] open a chat\n"
    "[bold]/retry[/bold] resend the last message   [bold]/stats[/bold] counters   "
    "[bold]/clear[/bold] discard the current chat   [bold]exit[/bold] leave"
)


def configure_cli_logging() -> None:
    logging.disable(logging.CRITICAL)
    logging.basicConfig(level=logging.CRITICAL)
    for logger_name in ("chatapp", "httpx", "openai", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def _should_exit_chat(text: str) -> bool:
    return text.strip().lower() in EXIT_COMMANDS


def _print_message(message: Message) -> None:
    if display_sender(message.role) == "user":
        console.print(f"[bold cyan]You:[/bold cyan] {message.content}")
    else:
        console.print("[bold green]Assistant:[/bold green]")
        console.print(Markdown(message.content))
    console.print()


def _print_error(error: ChatError) -> None:
    console.print(f"[red]❌ {error.user_message}[/red]\n")


def _sessions_table(context: AppContext, limit: int | None) -> Table:
    table = Table(title="Saved chats")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Messages", justify="right")
    table.add_column("Updated", style="dim")
    for session in context.manager.recent_sessions(limit):
        table.add_row(
            session.id,
            session.title or "",
            str(len(session.messages)),
            session.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


async def _handle_command(context: AppContext, text: str) -> None:
    """Run a slash command inside the REPL."""
    manager = context.manager
    command, _, argument = text.strip().partition(" ")
    argument = argument.strip()

    if command == "/new":
        session_id = manager.start_new_session()
        console.print(f"[green]🆕 New chat started ({session_id})[/green]\n")
    elif command == "/history":
        console.print(_sessions_table(context, None))
    elif command == "/load":
        if not argument:
            console.print("[yellow]Usage: /load <session-id>[/yellow]\n")
            return
        session = manager.load_session(argument)
        console.print(f"[green]📂 Loaded chat: {session.title}[/green]\n")
        for message in session.messages:
            _print_message(message)
    elif command == "/retry":
        with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
            reply = await manager.complete_turn()
        if reply is not None:
            _print_message(reply)
    elif command == "/stats":
        stats = manager.get_stats()
        console.print(
            f"{stats.user_messages} user / {stats.assistant_messages} assistant messages, "
            f"{stats.total_characters} characters\n"
        )
    elif command == "/clear":
        manager.clear_conversation()
        console.print("[yellow]Conversation cleared.[/yellow]\n")
    else:
        console.print(REPL_HELP + "\n")


@click.group()
@click.version_option(version=__version__, prog_name="Chatbot")
def cli():
    """Chatbot - conversation sessions backed by a hosted language model."""
    configure_cli_logging()


@cli.command()
@click.option("--session", "session_id", default=None, help="Resume a saved session by id.")
@click.option("--model", default=None, help="Model identifier override for this run.")
def chat(session_id: str | None, model: str | None):
    """Interactive REPL mode for conversations."""
    console.print(
        Panel.fit(
            "[bold green]Chatbot Interactive Mode[/bold green]\n"
            "Type a message and press Enter. Type 'exit' or 'quit' to leave.\n" + REPL_HELP,
            border_style="green",
        )
    )

    async def run_chat():
        context = build_context()
        if model:
            context.client.model = model
        try:
            if session_id:
                session = context.manager.load_session(session_id)
                for message in session.messages:
                    _print_message(message)

            while True:
                try:
                    text = console.input("[bold cyan]You:[/bold cyan] ")

                    if _should_exit_chat(text):
                        console.print("\n[yellow]Goodbye![/yellow]")
                        break

                    if text.strip().startswith("/"):
                        await _handle_command(context, text)
                        continue

                    with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                        reply = await context.manager.submit_user_message(text)
                    if reply is not None:
                        _print_message(reply)

                except ChatError as e:
                    _print_error(e)
                    continue
                except KeyboardInterrupt:
                    console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]")
                    continue
        finally:
            await context.aclose()

    try:
        asyncio.run(run_chat())
    except ChatError as e:
        _print_error(e)
        sys.exit(1)
    except EOFError:
        console.print("\n[yellow]Goodbye![/yellow]")


@cli.command()
@click.option("--limit", default=None, type=int, help="Maximum number of sessions to list.")
def sessions(limit: int | None):
    """List saved sessions, most recent first."""
    context = build_context()
    if len(context.store) == 0:
        console.print("[yellow]No saved chats yet.[/yellow]")
        return
    console.print(_sessions_table(context, limit))


@cli.command()
@click.argument("session_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file.")
def export(session_id: str, output: str | None):
    """Export a saved session as JSON."""
    context = build_context()
    session = context.store.find_by_id(session_id)
    if session is None:
        console.print(f"[red]❌ Chat not found: {session_id}[/red]")
        sys.exit(1)

    payload = json.dumps(session.model_dump(mode="json"), indent=2, ensure_ascii=False)
    if output:
        with open(output, "w", encoding="utf-8") as handle:
            handle.write(payload)
        console.print(f"[green]✓ Exported {session_id} to {output}[/green]")
    else:
        click.echo(payload)


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to API_HOST).")
@click.option("--port", default=None, type=int, help="Port (defaults to API_PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API server."""
    import uvicorn

    logging.disable(logging.NOTSET)
    settings = get_settings()
    settings.logging.configure()
    uvicorn.run(
        "chatapp.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.logging.level.lower(),
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
