"""Resolve command argument tokens to directory entities.

Every entity kind runs the same strategy chain, in this order:

1. keyword (``self`` or ``this``),
2. mention (``<@ID>``, ``<@!ID>``, ``<@&ID>``, ``<#ID>``),
3. bare snowflake ID,
4. exact name match against the ambient guild's collection.

The first strategy that produces an entity wins. A well-formed ID that is
not in the directory falls through to the next strategy, except for kinds
marked ``stop_on_miss``. Name matching returns the first candidate in the
directory's own enumeration order, so with duplicate names the result
depends on that order.
"""

from __future__ import annotations

import enum
import inspect
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .context import (
    GuildMessageContext,
    MessageContext,
    as_guild_context,
)
from .snowflake import parse_snowflake

GENERIC_PARSED_USER = (
    'A Discord User, specified either by a mention, the Discord Snowflake Id, '
    'the keyword "self" or Username#Discriminator'
)
GENERIC_PARSED_ROLE = (
    "A Guild Role, specified either by a mention, the Discord Snowflake Id "
    "or role name"
)
GENERIC_PARSED_CHANNEL = (
    "A Guild Channel, specified either by a mention, the Discord Snowflake Id, "
    'the keyword "this" or channel name'
)
GENERIC_PARSED_GUILD = (
    'A Guild, specified either by the Discord Snowflake Id or the keyword "this"'
)

SELF_KEYWORD = "self"
THIS_KEYWORD = "this"
MENTION_END = ">"


class Strategy(enum.Flag):
    KEYWORD = enum.auto()
    MENTION = enum.auto()
    ID = enum.auto()
    NAME = enum.auto()
    ALL = KEYWORD | MENTION | ID | NAME


@dataclass(frozen=True, slots=True)
class EntityKind:
    """How one kind of entity is found.

    ``keywords`` maps a keyword to an accessor on the context; an accessor
    returning ``None`` means the keyword does not apply in that context.
    ``lookup`` returns the entity for a snowflake; kinds whose lookup returns
    an awaitable set ``awaitable_lookup`` and only work with
    :func:`resolve_async`. ``candidates`` enumerates entities for the name
    strategy; ``None`` disables it for the kind. ``stop_on_miss`` ends
    resolution at the first well-formed id that is not found, skipping the
    name strategy.
    """

    name: str
    lookup: Callable[[Any, int], Any]
    keywords: Mapping[str, Callable[[Any], Any | None]] = field(default_factory=dict)
    mention_prefixes: tuple[str, ...] = ()
    candidates: Callable[[Any], Iterable[Any]] | None = None
    display: Callable[[Any], str] = str
    stop_on_miss: bool = False
    awaitable_lookup: bool = False


def _keyword_equals(keyword: str, token: str) -> bool:
    if keyword == THIS_KEYWORD:
        return token.lower() == keyword
    return token == keyword


def _match_keyword(kind: EntityKind, context: Any, token: str) -> Any | None:
    for keyword, accessor in kind.keywords.items():
        if _keyword_equals(keyword, token):
            return accessor(context)
    return None


def mention_id(token: str, prefixes: Iterable[str]) -> int | None:
    """Extract the snowflake from a mention token such as ``<@!123>``."""
    if not token.endswith(MENTION_END):
        return None
    # Longest wrapper first so "<@!" is not read as "<@" + "!123".
    for prefix in sorted(prefixes, key=len, reverse=True):
        if token.startswith(prefix) and len(token) > len(prefix) + len(MENTION_END):
            return parse_snowflake(token[len(prefix) : -len(MENTION_END)])
    return None


def _snowflakes(
    kind: EntityKind, token: str, strategies: Strategy
) -> Iterator[int]:
    if Strategy.MENTION in strategies and kind.mention_prefixes:
        snowflake = mention_id(token, kind.mention_prefixes)
        if snowflake is not None:
            yield snowflake
    if Strategy.ID in strategies:
        snowflake = parse_snowflake(token)
        if snowflake is not None:
            yield snowflake


def _match_name(kind: EntityKind, context: Any, token: str) -> Any | None:
    if kind.candidates is None:
        return None
    for candidate in kind.candidates(context):
        if kind.display(candidate) == token:
            return candidate
    return None


def _check_context(context: object) -> None:
    if context is None:
        raise TypeError("context must not be None")


def resolve(
    kind: EntityKind,
    context: Any,
    token: str,
    strategies: Strategy = Strategy.ALL,
) -> Any | None:
    _check_context(context)
    if kind.awaitable_lookup:
        raise TypeError(f"{kind.name} lookups must be awaited; use resolve_async")
    if Strategy.KEYWORD in strategies:
        result = _match_keyword(kind, context, token)
        if result is not None:
            return result
    for snowflake in _snowflakes(kind, token, strategies):
        result = kind.lookup(context, snowflake)
        if result is not None:
            return result
        if kind.stop_on_miss:
            return None
    if Strategy.NAME in strategies:
        return _match_name(kind, context, token)
    return None


async def resolve_async(
    kind: EntityKind,
    context: Any,
    token: str,
    strategies: Strategy = Strategy.ALL,
) -> Any | None:
    """Same chain as :func:`resolve`; awaits lookups that return awaitables."""
    _check_context(context)
    if Strategy.KEYWORD in strategies:
        result = _match_keyword(kind, context, token)
        if result is not None:
            return result
    for snowflake in _snowflakes(kind, token, strategies):
        result = kind.lookup(context, snowflake)
        if inspect.isawaitable(result):
            result = await result
        if result is not None:
            return result
        if kind.stop_on_miss:
            return None
    if Strategy.NAME in strategies:
        return _match_name(kind, context, token)
    return None


def _guild_channel_of(context: MessageContext | GuildMessageContext) -> Any | None:
    guild_context = as_guild_context(context)
    return None if guild_context is None else guild_context.guild_channel


def _guild_of(context: MessageContext | GuildMessageContext) -> Any | None:
    guild_context = as_guild_context(context)
    return None if guild_context is None else guild_context.guild


USER: EntityKind = EntityKind(
    name="user",
    keywords={SELF_KEYWORD: lambda context: context.user},
    mention_prefixes=("<@!", "<@"),
    lookup=lambda context, user_id: context.directory.fetch_user(user_id),
    stop_on_miss=True,
    awaitable_lookup=True,
)

GUILD_MEMBER: EntityKind = EntityKind(
    name="guild_member",
    keywords={SELF_KEYWORD: lambda context: context.member},
    mention_prefixes=("<@!", "<@"),
    lookup=lambda context, user_id: context.guild.get_member(user_id),
    candidates=lambda context: context.guild.members,
)

ROLE: EntityKind = EntityKind(
    name="role",
    mention_prefixes=("<@&",),
    lookup=lambda context, role_id: context.guild.get_role(role_id),
    candidates=lambda context: context.guild.roles,
    display=lambda role: role.name,
)

GUILD_CHANNEL: EntityKind = EntityKind(
    name="guild_channel",
    keywords={THIS_KEYWORD: lambda context: context.guild_channel},
    mention_prefixes=("<#",),
    lookup=lambda context, channel_id: context.guild.get_channel(channel_id),
    candidates=lambda context: context.guild.channels,
    display=lambda channel: channel.name,
)

TEXT_CHANNEL: EntityKind = EntityKind(
    name="text_channel",
    keywords={THIS_KEYWORD: _guild_channel_of},
    mention_prefixes=("<#",),
    lookup=lambda context, channel_id: context.directory.get_text_channel(
        channel_id
    ),
)

GUILD: EntityKind = EntityKind(
    name="guild",
    keywords={THIS_KEYWORD: _guild_of},
    lookup=lambda context, guild_id: context.directory.get_guild(guild_id),
)

ENTITY_KINDS: tuple[EntityKind, ...] = (
    USER,
    GUILD_MEMBER,
    ROLE,
    GUILD_CHANNEL,
    TEXT_CHANNEL,
    GUILD,
)


async def parse_user(
    context: MessageContext | GuildMessageContext,
    argument: str,
    *,
    allow_mention: bool = True,
    allow_self: bool = True,
    allow_id: bool = True,
) -> Any | None:
    """Resolve a user without needing a guild; may fetch from the network."""
    strategies = _strategies(
        keyword=allow_self, mention=allow_mention, id=allow_id, name=False
    )
    return await resolve_async(USER, context, argument, strategies)


def parse_guild_member(
    context: GuildMessageContext,
    argument: str,
    *,
    allow_mention: bool = True,
    allow_self: bool = True,
    allow_id: bool = True,
    allow_name: bool = True,
) -> Any | None:
    strategies = _strategies(
        keyword=allow_self, mention=allow_mention, id=allow_id, name=allow_name
    )
    return resolve(GUILD_MEMBER, context, argument, strategies)


def parse_role(
    context: GuildMessageContext,
    argument: str,
    *,
    allow_mention: bool = True,
    allow_id: bool = True,
    allow_name: bool = True,
) -> Any | None:
    strategies = _strategies(
        keyword=False, mention=allow_mention, id=allow_id, name=allow_name
    )
    return resolve(ROLE, context, argument, strategies)


def parse_guild_channel(
    context: GuildMessageContext,
    argument: str,
    *,
    allow_mention: bool = True,
    allow_this: bool = True,
    allow_id: bool = True,
    allow_name: bool = True,
) -> Any | None:
    strategies = _strategies(
        keyword=allow_this, mention=allow_mention, id=allow_id, name=allow_name
    )
    return resolve(GUILD_CHANNEL, context, argument, strategies)


def parse_text_channel(
    context: MessageContext | GuildMessageContext,
    argument: str,
    *,
    allow_mention: bool = True,
    allow_this: bool = True,
    allow_id: bool = True,
) -> Any | None:
    strategies = _strategies(
        keyword=allow_this, mention=allow_mention, id=allow_id, name=False
    )
    return resolve(TEXT_CHANNEL, context, argument, strategies)


def parse_guild(
    context: MessageContext | GuildMessageContext,
    argument: str,
    *,
    allow_this: bool = True,
    allow_id: bool = True,
) -> Any | None:
    strategies = _strategies(keyword=allow_this, mention=False, id=allow_id, name=False)
    return resolve(GUILD, context, argument, strategies)


def _strategies(*, keyword: bool, mention: bool, id: bool, name: bool) -> Strategy:
    strategies = Strategy(0)
    if keyword:
        strategies |= Strategy.KEYWORD
    if mention:
        strategies |= Strategy.MENTION
    if id:
        strategies |= Strategy.ID
    if name:
        strategies |= Strategy.NAME
    return strategies
