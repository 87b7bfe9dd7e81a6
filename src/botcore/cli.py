from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path

import anyio
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .botvars import BotVarStore
from .builtin import register_builtin_commands
from .commands import CommandRegistry
from .config import ConfigError
from .context import MessageContext
from .logging import get_logger, setup_logging
from .parser import CommandParser
from .settings import DEFAULT_PREFIX, load_settings, require_discord

logger = get_logger(__name__)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@dataclass(frozen=True, slots=True)
class _LocalEntity:
    id: int
    name: str


class _OfflineDirectory:
    """Empty directory for parsing messages outside Discord."""

    def get_guild(self, guild_id: int) -> None:
        return None

    def get_text_channel(self, channel_id: int) -> None:
        return None

    async def fetch_user(self, user_id: int) -> None:
        return None


def _offline_context(content: str) -> MessageContext:
    local = _LocalEntity(id=0, name="cli")
    return MessageContext(
        content=content, user=local, channel=local, directory=_OfflineDirectory()
    )


def parse(
    text: str = typer.Argument(..., help="Message text, including the prefix."),
    prefix: str = typer.Option(DEFAULT_PREFIX, "--prefix", "-p", help="Command prefix."),
) -> None:
    """Tokenize a message and show the identifier and arguments."""
    try:
        parser = CommandParser(CommandRegistry(), prefix=prefix)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    if not parser.is_potential_command(text):
        typer.echo(f"not a command (prefix {prefix!r})")
        raise typer.Exit(code=1)
    invocation = parser.parse_command(_offline_context(text))
    console.print(f"identifier: [bold]{escape(repr(invocation.identifier))}[/bold]")
    console.print(f"argument section: {escape(repr(invocation.argument_section))}")
    table = Table("#", "argument")
    for index, argument in enumerate(invocation.arguments):
        table.add_row(str(index), escape(repr(argument)))
    console.print(table)


def syntax(
    identifier: str = typer.Argument(..., help="Command identifier."),
    arguments: list[str] | None = typer.Argument(None, help="Argument names."),
    prefix: str = typer.Option(DEFAULT_PREFIX, "--prefix", "-p", help="Command prefix."),
) -> None:
    """Print the usage string for a command."""
    try:
        parser = CommandParser(CommandRegistry(), prefix=prefix)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    typer.echo(parser.command_syntax(identifier, arguments or ()))


async def _run_bot(
    token: str,
    *,
    parser: CommandParser,
) -> None:
    from .discord import CommandListener, DiscordBotClient, DiscordDirectory

    client = DiscordBotClient(token)
    listener = CommandListener(parser, DiscordDirectory(client.bot))
    client.set_message_handler(listener.on_message)
    await client.run()


def run(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to botcore.toml."
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Connect to Discord and parse incoming commands."""
    setup_logging(debug=debug)
    try:
        settings, config_path = load_settings(config)
        token = require_discord(settings, config_path)
        botvars = BotVarStore(settings.resolve_botvars_path(config_path=config_path))
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    registry = CommandRegistry()
    parser = CommandParser(registry, prefix=settings.prefix)
    register_builtin_commands(registry, parser)
    parser.setup(botvars)
    logger.info("run.start", config_path=str(config_path), prefix=parser.prefix)
    anyio.run(partial(_run_bot, token, parser=parser))


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        invoke_without_command=True,
        help="Chat-command parsing for Discord bots.",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        version: bool = typer.Option(
            False,
            "--version",
            help="Show the version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ) -> None:
        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help())
            raise typer.Exit()

    app.command(name="parse")(parse)
    app.command(name="syntax")(syntax)
    app.command(name="run")(run)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
