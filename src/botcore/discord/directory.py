"""Pycord-backed directory and message contexts."""

from __future__ import annotations

import discord

from ..context import MessageContext
from ..logging import get_logger

logger = get_logger(__name__)


class DiscordDirectory:
    """Directory view over a connected Pycord client.

    Guild and channel lookups only read the client cache. ``fetch_user``
    falls back to one REST request when the user is not cached and never
    retries.
    """

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    def get_guild(self, guild_id: int) -> discord.Guild | None:
        return self._client.get_guild(guild_id)

    def get_text_channel(self, channel_id: int) -> discord.TextChannel | None:
        channel = self._client.get_channel(channel_id)
        if isinstance(channel, discord.TextChannel):
            return channel
        return None

    async def fetch_user(self, user_id: int) -> discord.User | None:
        user = self._client.get_user(user_id)
        if user is not None:
            return user
        try:
            return await self._client.fetch_user(user_id)
        except discord.NotFound:
            return None
        except discord.HTTPException as exc:
            logger.warning(
                "directory.fetch_user_failed",
                user_id=user_id,
                error=str(exc),
                status=getattr(exc, "status", None),
            )
            return None


def context_from_message(
    message: discord.Message, directory: DiscordDirectory
) -> MessageContext:
    guild = message.guild
    member = message.author if isinstance(message.author, discord.Member) else None
    guild_channel = None
    if guild is not None and isinstance(
        message.channel, (discord.abc.GuildChannel, discord.Thread)
    ):
        guild_channel = message.channel
    return MessageContext(
        content=message.content,
        user=message.author,
        channel=message.channel,
        directory=directory,
        guild=guild,
        member=member,
        guild_channel=guild_channel,
        message_id=message.id,
    )
