"""Chat-command parsing and directory argument resolution for Discord bots."""

__version__ = "0.1.0"
