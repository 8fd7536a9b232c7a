"""Custom exceptions for the Stack Overflow search command."""


class StackOverflowSearchError(Exception):
    """Base exception for mcp-server-stackoverflow errors."""

    pass


class NetworkError(StackOverflowSearchError):
    """Raised when a search, page fetch or model call fails at the transport level."""

    pass


class MalformedResponseError(StackOverflowSearchError):
    """Raised when the search proxy returns something other than ``{"organic": [...]}``."""

    pass


class LLMProviderError(StackOverflowSearchError):
    """Raised when LLM provider configuration is invalid."""

    pass


class ConfigError(StackOverflowSearchError):
    """Raised when a configuration file exists but cannot be read."""

    pass
