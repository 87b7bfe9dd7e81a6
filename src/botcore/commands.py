from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, TypeAlias

if TYPE_CHECKING:
    from .parser import CommandInvocation

CommandSearchResult: TypeAlias = Literal["matched", "wrong_arity", "not_found"]
CommandHandler: TypeAlias = Callable[["CommandInvocation"], Awaitable[str | None]]


@dataclass(frozen=True, slots=True)
class Argument:
    name: str
    help: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Command:
    identifier: str
    arguments: tuple[Argument, ...] = ()
    description: str = ""
    handler: CommandHandler | None = field(default=None, compare=False)

    @property
    def arity(self) -> int:
        return len(self.arguments)


@dataclass(frozen=True, slots=True)
class CommandMatch:
    result: CommandSearchResult
    command: Command | None = None


class CommandRegistry:
    """Commands keyed by identifier, with one variant per arity."""

    def __init__(self, commands: tuple[Command, ...] | list[Command] = ()) -> None:
        self._by_identifier: dict[str, dict[int, Command]] = {}
        for command in commands:
            self.register(command)

    def register(self, command: Command) -> None:
        variants = self._by_identifier.setdefault(command.identifier, {})
        if command.arity in variants:
            raise ValueError(
                f"duplicate command {command.identifier!r} "
                f"with {command.arity} argument(s)"
            )
        variants[command.arity] = command

    def unregister(self, identifier: str, arity: int) -> Command | None:
        variants = self._by_identifier.get(identifier)
        if variants is None:
            return None
        command = variants.pop(arity, None)
        if not variants:
            del self._by_identifier[identifier]
        return command

    def try_find_command(self, identifier: str, arg_count: int) -> CommandMatch:
        variants = self._by_identifier.get(identifier)
        if not variants:
            return CommandMatch(result="not_found")
        command = variants.get(arg_count)
        if command is None:
            return CommandMatch(result="wrong_arity")
        return CommandMatch(result="matched", command=command)

    def variants(self, identifier: str) -> tuple[Command, ...]:
        variants = self._by_identifier.get(identifier, {})
        return tuple(variants[arity] for arity in sorted(variants))

    def identifiers(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_identifier))

    def __len__(self) -> int:
        return sum(len(variants) for variants in self._by_identifier.values())

    def __iter__(self) -> Iterator[Command]:
        for identifier in self.identifiers():
            yield from self.variants(identifier)
