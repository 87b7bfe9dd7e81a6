"""Route inbound Discord messages through the command parser."""

from __future__ import annotations

import discord

from ..logging import bind_context, clear_context, get_logger
from ..parser import CommandInvocation, CommandParser
from .directory import DiscordDirectory, context_from_message

logger = get_logger(__name__)


class CommandListener:
    def __init__(self, parser: CommandParser, directory: DiscordDirectory) -> None:
        self._parser = parser
        self._directory = directory

    async def on_message(self, message: discord.Message) -> bool:
        """Handle *message* if it looks like a command.

        Returns True when the message was treated as a command, whether or not
        a matching command was found.
        """
        content = message.content or ""
        if not self._parser.is_potential_command(content):
            return False
        bind_context(message_id=message.id, channel_id=message.channel.id)
        try:
            context = context_from_message(message, self._directory)
            invocation = self._parser.parse_command(context)
            await self._dispatch(message, invocation)
        finally:
            clear_context()
        return True

    async def _dispatch(
        self, message: discord.Message, invocation: CommandInvocation
    ) -> None:
        failure = self._parser.describe_failure(invocation)
        if failure is not None:
            logger.info(
                "listener.command_rejected",
                identifier=invocation.identifier,
                result=invocation.result,
                argument_count=len(invocation.arguments),
            )
            await self._reply(message, failure)
            return
        command = invocation.command
        assert command is not None
        if command.handler is None:
            logger.debug("listener.no_handler", identifier=command.identifier)
            return
        logger.info(
            "listener.command",
            identifier=command.identifier,
            argument_count=command.arity,
        )
        try:
            reply = await command.handler(invocation)
        except Exception as exc:
            logger.exception(
                "listener.command_failed",
                identifier=command.identifier,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            await self._reply(message, f"error:\n{exc}")
            return
        if reply:
            await self._reply(message, reply)

    async def _reply(self, message: discord.Message, text: str) -> None:
        try:
            await message.reply(text, mention_author=False)
        except discord.HTTPException as exc:
            logger.error(
                "listener.reply_failed",
                channel_id=message.channel.id,
                error=str(exc),
                status=getattr(exc, "status", None),
            )
