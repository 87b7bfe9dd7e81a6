"""Discord gateway connection."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

import discord

from ..logging import get_logger

logger = get_logger(__name__)

MessageHandler: TypeAlias = Callable[[discord.Message], Awaitable[Any]]


def _intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True
    intents.messages = True
    return intents


class DiscordBotClient:
    """Pycord client that hands every message not sent by itself to one handler."""

    def __init__(self, token: str) -> None:
        self._token = token
        self._message_handler: MessageHandler | None = None
        # Created on first use so Pycord binds to the running event loop.
        self._bot: discord.Client | None = None

    def _ensure_bot(self) -> discord.Client:
        if self._bot is not None:
            return self._bot
        bot = discord.Client(intents=_intents())

        @bot.event
        async def on_message(message: discord.Message) -> None:
            await self._dispatch(message)

        self._bot = bot
        return bot

    @property
    def bot(self) -> discord.Client:
        return self._ensure_bot()

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    async def _dispatch(self, message: discord.Message) -> None:
        bot = self._ensure_bot()
        if message.author == bot.user:
            return
        if self._message_handler is None:
            logger.debug("client.message_dropped", message_id=message.id)
            return
        await self._message_handler(message)

    async def run(self) -> None:
        """Connect and process events until the connection is closed."""
        bot = self._ensure_bot()
        logger.info("client.connecting")
        try:
            await bot.start(self._token)
        finally:
            if not bot.is_closed():
                await bot.close()
            logger.info("client.closed")
