"""Observability helpers: structured logging with per-invocation context."""

from .logging import bind_command_context, clear_command_context, get_command_logger, setup_structured_logging

__all__ = [
    "bind_command_context",
    "clear_command_context",
    "get_command_logger",
    "setup_structured_logging",
]
