"""Pycord adapters for the command parser and directory resolver."""

from .client import DiscordBotClient
from .directory import DiscordDirectory, context_from_message
from .listener import CommandListener

__all__ = [
    "CommandListener",
    "DiscordBotClient",
    "DiscordDirectory",
    "context_from_message",
]
