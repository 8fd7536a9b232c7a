"""MCP server answering programming questions from Stack Overflow."""

from .commands import SlashCommand, SlashCommandContext, StackOverflowSlashCommand
from .config import get_settings, load_config
from .exceptions import (
    ConfigError,
    LLMProviderError,
    MalformedResponseError,
    NetworkError,
    StackOverflowSearchError,
)
from .providers import get_llm

__all__ = [
    "SlashCommand",
    "SlashCommandContext",
    "StackOverflowSlashCommand",
    "get_settings",
    "load_config",
    "get_llm",
    "StackOverflowSearchError",
    "NetworkError",
    "MalformedResponseError",
    "LLMProviderError",
    "ConfigError",
]
