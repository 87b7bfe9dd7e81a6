"""Message contexts and the directory protocols the resolver reads from."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


class Snowflake(Protocol):
    @property
    def id(self) -> int: ...


class User(Snowflake, Protocol):
    @property
    def name(self) -> str: ...


class Role(Snowflake, Protocol):
    @property
    def name(self) -> str: ...


class Channel(Snowflake, Protocol): ...


class GuildChannel(Channel, Protocol):
    @property
    def name(self) -> str: ...


class Guild(Snowflake, Protocol):
    @property
    def name(self) -> str: ...

    @property
    def members(self) -> Sequence[Any]: ...

    @property
    def roles(self) -> Sequence[Any]: ...

    @property
    def channels(self) -> Sequence[Any]: ...

    def get_member(self, user_id: int, /) -> Any | None: ...

    def get_role(self, role_id: int, /) -> Any | None: ...

    def get_channel(self, channel_id: int, /) -> Any | None: ...


class Directory(Protocol):
    """Read-only view of the directory service.

    ``get_guild`` and ``get_text_channel`` read already-materialized state;
    ``fetch_user`` may go to the network.
    """

    def get_guild(self, guild_id: int) -> Guild | None: ...

    def get_text_channel(self, channel_id: int) -> GuildChannel | None: ...

    async def fetch_user(self, user_id: int) -> User | None: ...


@dataclass(frozen=True, slots=True)
class MessageContext:
    """One inbound message plus whatever ambient state came with it.

    ``guild``, ``member`` and ``guild_channel`` are only set for messages
    sent inside a guild.
    """

    content: str
    user: User
    channel: Channel
    directory: Directory
    guild: Guild | None = None
    member: User | None = None
    guild_channel: GuildChannel | None = None
    message_id: int | None = None


@dataclass(frozen=True, slots=True)
class GuildMessageContext:
    content: str
    user: User
    member: User
    guild: Guild
    guild_channel: GuildChannel
    directory: Directory
    message_id: int | None = None

    @property
    def channel(self) -> GuildChannel:
        return self.guild_channel


def as_guild_context(
    context: MessageContext | GuildMessageContext,
) -> GuildMessageContext | None:
    """Convert *context* to a guild-bearing context, or return ``None``."""
    if isinstance(context, GuildMessageContext):
        return context
    if context.guild is None or context.guild_channel is None:
        return None
    return GuildMessageContext(
        content=context.content,
        user=context.user,
        member=context.member if context.member is not None else context.user,
        guild=context.guild,
        guild_channel=context.guild_channel,
        directory=context.directory,
        message_id=context.message_id,
    )
