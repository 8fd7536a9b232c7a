"""MCP server exposing the Stack Overflow slash command as a tool."""

import json
import logging
import sys
import time
import uuid


def _configure_stdio_logging() -> None:
    """Send all logging to stderr.

    In stdio mode, stdout is reserved exclusively for JSON-RPC messages.
    Any logging or print() to stdout corrupts the protocol stream.
    """
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root = logging.getLogger()
    root.handlers = [stderr_handler]
    root.setLevel(logging.WARNING)

    for logger_name in ["httpx", "httpcore", "asyncio", "browser_use", "openai", "anthropic"]:
        dep_logger = logging.getLogger(logger_name)
        dep_logger.setLevel(logging.WARNING)
        dep_logger.handlers = [stderr_handler]
        dep_logger.propagate = False


# Configure logging BEFORE importing browser_use and other noisy dependencies
_configure_stdio_logging()

# ruff: noqa: E402 - Intentional late imports after logging configuration
import httpx
import psutil
from fastmcp import FastMCP
from fastmcp.server.context import Context

from .commands import StackOverflowSlashCommand, SlashCommandContext, list_commands
from .config import get_config, get_settings
from .exceptions import ConfigError, LLMProviderError
from .models import ContextItem
from .observability import bind_command_context, clear_command_context, get_command_logger, setup_structured_logging
from .providers import build_chat_model
from .stream import CancellableStream

logger = logging.getLogger("mcp_server_stackoverflow")

# Running command streams, keyed by task id, for task_cancel
_running_streams: dict[str, CancellableStream] = {}


def _http_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


def format_sources(items: list[ContextItem]) -> str:
    """Markdown list of the sources an answer was built from."""
    if not items:
        return ""
    lines = [f"- [{item.name}]({item.id.item_id})" for item in items]
    return "\n\n## Sources\n" + "\n".join(lines)


def serve() -> FastMCP:
    """Create and configure the MCP server."""
    setup_structured_logging()

    server = FastMCP("mcp_server_stackoverflow")

    @server.tool()
    async def so(query: str, ctx: Context) -> str:
        """
        Answer a programming question using Stack Overflow.

        Searches Stack Overflow, reads the question and top answer of up to
        three result pages, and asks the configured model to answer using them.

        Args:
            query: The programming question to answer

        Returns:
            The model's answer in markdown, followed by the sources used
        """
        task_id = str(uuid.uuid4())
        bind_command_context(task_id, "so")
        command_logger = get_command_logger()
        command_logger.info("command_started", query_preview=query[:100])

        try:
            settings = get_settings()
            llm = build_chat_model(settings.llm)
        except (ConfigError, LLMProviderError) as e:
            logger.error(f"Command setup failed: {e}")
            clear_command_context()
            return f"Error: {e}"

        items: list[ContextItem] = []
        await ctx.info(f"Searching Stack Overflow (task {task_id[:8]})")

        try:
            async with _http_client(settings.search.request_timeout) as client:
                command_ctx = SlashCommandContext(
                    llm=llm,
                    input=query,
                    add_context_item=items.append,
                    fetch=client,
                    proxy_url=get_config().proxy_info.proxy_url,
                    max_sources=settings.search.max_sources,
                )
                stream = StackOverflowSlashCommand.start(command_ctx)
                _running_streams[task_id] = stream
                try:
                    answer = "".join(await stream.collect())
                except Exception as e:
                    command_logger.error("command_failed", error=str(e))
                    raise
                finally:
                    _running_streams.pop(task_id, None)
                    await stream.aclose()

            for item in items:
                await ctx.info(f"Source: {item.name} {item.id.item_id}")

            if stream.cancelled:
                command_logger.info("command_cancelled", answer_length=len(answer))
                return f"Cancelled.\n\n{answer}" if answer else "Cancelled."

            command_logger.info("command_completed", sources=len(items), answer_length=len(answer))
            return answer + format_sources(items)
        finally:
            clear_command_context()

    @server.tool()
    async def health_check() -> str:
        """
        Health check endpoint with process stats and running commands.

        Returns:
            JSON object with server health status
        """
        process = psutil.Process()
        memory_info = process.memory_info()

        return json.dumps(
            {
                "status": "healthy",
                "uptime_seconds": round(time.time() - _server_start_time, 1),
                "memory_mb": round(memory_info.rss / 1024 / 1024, 1),
                "running_tasks": [task_id[:8] for task_id in _running_streams],
                "commands": [command.name for command in list_commands()],
            },
            indent=2,
        )

    @server.tool()
    async def task_cancel(task_id: str) -> str:
        """
        Cancel a running command, aborting its in-flight requests.

        Args:
            task_id: Task ID (full or prefix match)

        Returns:
            JSON with success status and message
        """
        matched_id = None
        for full_id in _running_streams:
            if full_id.startswith(task_id):
                matched_id = full_id
                break

        if not matched_id:
            return json.dumps({"success": False, "error": f"Task '{task_id}' not found or not running"})

        _running_streams[matched_id].cancel()
        return json.dumps({"success": True, "task_id": matched_id[:8], "message": "Task cancelled"})

    return server


# Track server start time for uptime calculation
_server_start_time = time.time()


server_instance = serve()


def main() -> None:
    """Entry point for MCP server."""
    settings = get_settings()
    logger.setLevel(getattr(logging, settings.server.logging_level.upper()))
    transport = settings.server.transport

    if transport == "stdio":
        server_instance.run(transport="stdio")
    elif transport in ("streamable-http", "sse"):
        logger.info(f"Starting MCP Stack Overflow server (provider: {settings.llm.provider}, transport: {transport})")
        logger.info(f"HTTP server at http://{settings.server.host}:{settings.server.port}/mcp")
        server_instance.run(transport=transport, host=settings.server.host, port=settings.server.port)
    else:
        raise ValueError(f"Unknown transport: {transport}")


if __name__ == "__main__":
    main()
