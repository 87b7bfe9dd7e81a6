"""Built-in commands registered by ``botcore run``."""

from __future__ import annotations

from .commands import Argument, Command, CommandRegistry
from .context import as_guild_context
from .parser import CommandInvocation, CommandParser
from .resolver import GENERIC_PARSED_USER, parse_guild_member, parse_user

HELP_IDENTIFIER = "help"
WHOIS_IDENTIFIER = "whois"


def _help_text(parser: CommandParser, identifier: str | None = None) -> str:
    registry = parser.registry
    if identifier is None:
        lines = ["Commands:"]
        for command in registry:
            line = f"`{parser.command_syntax(command.identifier, command.arguments)}`"
            if command.description:
                line = f"{line} - {command.description}"
            lines.append(line)
        return "\n".join(lines)
    variants = registry.variants(identifier)
    if not variants:
        return f"Unknown command `{identifier}`."
    lines = []
    for command in variants:
        lines.append(f"`{parser.command_syntax(command.identifier, command.arguments)}`")
        if command.description:
            lines.append(command.description)
        for argument in command.arguments:
            if argument.help:
                lines.append(f"- {argument.name}: {argument.help}")
    return "\n".join(lines)


def _describe_user(user: object) -> str:
    user_id = getattr(user, "id", None)
    return f"{user} (id {user_id})"


def register_builtin_commands(
    registry: CommandRegistry, parser: CommandParser
) -> None:
    async def help_all(invocation: CommandInvocation) -> str:
        return _help_text(parser)

    async def help_one(invocation: CommandInvocation) -> str:
        return _help_text(parser, invocation.arguments[0])

    async def whois(invocation: CommandInvocation) -> str:
        token = invocation.arguments[0]
        guild_context = as_guild_context(invocation.context)
        if guild_context is not None:
            member = parse_guild_member(guild_context, token)
            if member is not None:
                return _describe_user(member)
        user = await parse_user(invocation.context, token)
        if user is None:
            return f"Could not find a user matching `{token}`."
        return _describe_user(user)

    registry.register(
        Command(HELP_IDENTIFIER, description="List all commands.", handler=help_all)
    )
    registry.register(
        Command(
            HELP_IDENTIFIER,
            arguments=(Argument("command", "The command to describe"),),
            description="Show usage for one command.",
            handler=help_one,
        )
    )
    registry.register(
        Command(
            WHOIS_IDENTIFIER,
            arguments=(Argument("user", GENERIC_PARSED_USER),),
            description="Show who a user argument resolves to.",
            handler=whois,
        )
    )
