"""CLI interface for the Stack Overflow search command."""

import asyncio
import uuid

import httpx
import typer

from .commands import StackOverflowSlashCommand, SlashCommandContext
from .config import get_config, get_settings
from .exceptions import LLMProviderError, StackOverflowSearchError
from .models import ContextItem
from .observability import bind_command_context, clear_command_context, setup_structured_logging
from .providers import build_chat_model

app = typer.Typer(help="Answer programming questions from Stack Overflow")


@app.command()
def so(
    query: str = typer.Argument(..., help="Question to answer"),
    max_sources: int = typer.Option(None, "--max-sources", "-n", help="Maximum number of answers to read"),
) -> None:
    """Search Stack Overflow and stream an answer to stdout."""
    settings = get_settings()
    setup_structured_logging(settings.server.logging_level)

    async def _so() -> list[ContextItem]:
        llm = build_chat_model(settings.llm)
        items: list[ContextItem] = []
        async with httpx.AsyncClient(timeout=settings.search.request_timeout, follow_redirects=True) as client:
            ctx = SlashCommandContext(
                llm=llm,
                input=query,
                add_context_item=items.append,
                fetch=client,
                proxy_url=get_config().proxy_info.proxy_url,
                max_sources=max_sources if max_sources is not None else settings.search.max_sources,
            )
            async with StackOverflowSlashCommand.start(ctx) as stream:
                async for chunk in stream:
                    typer.echo(chunk, nl=False)
        typer.echo()
        return items

    bind_command_context(str(uuid.uuid4()), "so")
    try:
        items = asyncio.run(_so())
    except LLMProviderError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e
    except StackOverflowSearchError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        clear_command_context()

    for item in items:
        typer.echo(f"[{item.name}] {item.id.item_id}", err=True)


@app.command()
def config() -> None:
    """Show current configuration."""
    result = get_config()
    for error in result.errors:
        typer.echo(f"Warning: {error}", err=True)
    settings = get_settings()
    print(f"Provider: {settings.llm.provider}")
    print(f"Model: {settings.llm.model_name}")
    print(f"Context length: {settings.llm.context_length}")
    print(f"Base URL: {settings.llm.base_url or '(default)'}")
    print(f"Search proxy: {result.proxy_info.proxy_url}")
    print(f"Max sources: {settings.search.max_sources}")


if __name__ == "__main__":
    app()
