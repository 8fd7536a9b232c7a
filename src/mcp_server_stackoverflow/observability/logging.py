"""Structured logging with per-invocation context using structlog and contextvars."""

import logging
import sys

import structlog

_configured = False


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON output and per-invocation context.

    Output goes to stderr so stdout stays free for streamed answers and the
    stdio MCP transport.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    global _configured
    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )

    _configured = True


def bind_command_context(run_id: str, command_name: str) -> None:
    """Bind invocation context for all subsequent logs in this async context.

    Args:
        run_id: Unique identifier of this command invocation
        command_name: Name of the slash command being run
    """
    structlog.contextvars.bind_contextvars(run_id=run_id, command=command_name)


def clear_command_context() -> None:
    """Clear invocation context after the command completes."""
    structlog.contextvars.clear_contextvars()


def get_command_logger(name: str = "mcp_server_stackoverflow") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger that carries the invocation context."""
    return structlog.get_logger(name)
