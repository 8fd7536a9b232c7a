"""Slash commands."""

from .slash import SlashCommand, SlashCommandContext, get_command, list_commands
from .stackoverflow import StackOverflowSlashCommand

__all__ = [
    "SlashCommand",
    "SlashCommandContext",
    "StackOverflowSlashCommand",
    "get_command",
    "list_commands",
]
