"""Command tokenizer and dispatcher.

Grammar of a command message::

    <prefix><identifier>[: <arg>[, <arg>]...]

Arguments are separated by commas. A comma directly preceded by a backslash
is part of the argument and is unescaped to a plain comma; no other
character is affected by the backslash.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .botvars import BotVar, BotVarStore
from .commands import Command, CommandRegistry, CommandSearchResult
from .context import GuildMessageContext, MessageContext
from .logging import get_logger
from .settings import DEFAULT_PREFIX

logger = get_logger(__name__)

PREFIX_BOTVAR = "prefix"
ARGUMENT_START = ":"
ARGUMENT_SEPARATOR = ","
ESCAPE = "\\"


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    context: MessageContext | GuildMessageContext
    identifier: str
    command: Command | None
    result: CommandSearchResult
    argument_section: str
    arguments: tuple[str, ...]

    @property
    def matched(self) -> bool:
        return self.result == "matched"


def _separator_indexes(section: str) -> Iterator[int]:
    for index, char in enumerate(section):
        if char != ARGUMENT_SEPARATOR:
            continue
        if index > 0 and section[index - 1] == ESCAPE:
            continue
        yield index


def _clean_argument(raw: str) -> str:
    return raw.strip().replace(ESCAPE + ARGUMENT_SEPARATOR, ARGUMENT_SEPARATOR)


def split_arguments(section: str) -> tuple[str, ...]:
    if not section:
        return ()
    arguments: list[str] = []
    start = 0
    for index in _separator_indexes(section):
        arguments.append(_clean_argument(section[start:index]))
        start = index + 1
    arguments.append(_clean_argument(section[start:]))
    return tuple(arguments)


def remove_arguments_front(count: int, section: str) -> str | None:
    """Drop the first *count* arguments from *section*.

    Returns the raw text after the *count*-th unescaped comma, or ``None``
    when *section* has fewer separators than that.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    if count == 0:
        return section
    for index in _separator_indexes(section):
        count -= 1
        if count == 0:
            return section[index + 1 :]
    return None


class CommandParser:
    def __init__(
        self, registry: CommandRegistry, *, prefix: str = DEFAULT_PREFIX
    ) -> None:
        if not prefix:
            raise ValueError("prefix must be a non-empty string")
        self._registry = registry
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def setup(self, botvars: BotVarStore) -> None:
        current = botvars.get(PREFIX_BOTVAR)
        if current is not None:
            self._on_botvar_update(current)
        botvars.subscribe_to_update(PREFIX_BOTVAR, self._on_botvar_update)

    def _on_botvar_update(self, var: BotVar) -> None:
        if var.is_string and var.string:
            if var.string != self._prefix:
                logger.info(
                    "parser.prefix_updated", old=self._prefix, new=var.string
                )
            self._prefix = var.string
            return
        logger.debug("parser.prefix_ignored", value=repr(var.value))

    def is_potential_command(self, text: str) -> bool:
        prefix = self._prefix
        return text.startswith(prefix) and len(text) > len(prefix)

    def parse_command(
        self, context: MessageContext | GuildMessageContext
    ) -> CommandInvocation:
        if context is None:
            raise TypeError("context must not be None")
        prefix = self._prefix
        message = context.content[len(prefix) :].strip()

        split_at = message.find(ARGUMENT_START)
        if split_at == -1 or split_at == len(message) - 1:
            identifier = message.removesuffix(ARGUMENT_START).strip()
            argument_section = ""
            arguments: tuple[str, ...] = ()
        else:
            identifier = message[:split_at].strip()
            argument_section = message[split_at + 1 :]
            arguments = split_arguments(argument_section)

        match = self._registry.try_find_command(identifier, len(arguments))
        logger.debug(
            "parser.parsed",
            identifier=identifier,
            argument_count=len(arguments),
            result=match.result,
        )
        return CommandInvocation(
            context=context,
            identifier=identifier,
            command=match.command,
            result=match.result,
            argument_section=argument_section,
            arguments=arguments,
        )

    def command_syntax(
        self, identifier: str, arguments: Iterable[object] = ()
    ) -> str:
        rendered = [str(argument) for argument in arguments]
        if not rendered:
            return f"{self._prefix}{identifier}"
        separator = f"{ARGUMENT_SEPARATOR} "
        return f"{self._prefix}{identifier}{ARGUMENT_START} {separator.join(rendered)}"

    def describe_failure(self, invocation: CommandInvocation) -> str | None:
        if invocation.result == "matched":
            return None
        if invocation.result == "not_found":
            if not invocation.identifier:
                return "No command given."
            return f"Unknown command `{invocation.identifier}`."
        usages = [
            f"`{self.command_syntax(command.identifier, command.arguments)}`"
            for command in self._registry.variants(invocation.identifier)
        ]
        count = len(invocation.arguments)
        plural = "argument" if count == 1 else "arguments"
        lines = [
            f"Command `{invocation.identifier}` does not take {count} {plural}.",
            "Usage:",
            *usages,
        ]
        return "\n".join(lines)
