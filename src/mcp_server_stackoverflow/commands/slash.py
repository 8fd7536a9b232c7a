"""Slash command definitions and the request-scoped context they run with."""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field

import httpx

from ..models import ChatMessage, ContextItem
from ..providers import ChatModel
from ..stream import CancellableStream


@dataclass
class SlashCommandContext:
    """Everything one command invocation may touch.

    Built fresh per invocation by the caller; commands never reach for
    module-level state.
    """

    llm: ChatModel
    input: str
    add_context_item: Callable[[ContextItem], None]
    fetch: httpx.AsyncClient
    proxy_url: str
    history: list[ChatMessage] = field(default_factory=list)
    max_sources: int = 3


@dataclass(frozen=True)
class SlashCommand:
    name: str
    description: str
    run: Callable[[SlashCommandContext], AsyncGenerator[str, None]]

    def start(self, ctx: SlashCommandContext) -> CancellableStream:
        """Begin a run and return its output as a cancellable stream."""
        return CancellableStream(self.run(ctx))


_registry: dict[str, SlashCommand] = {}


def register(command: SlashCommand) -> SlashCommand:
    if command.name in _registry:
        raise ValueError(f"Slash command '{command.name}' is already registered")
    _registry[command.name] = command
    return command


def get_command(name: str) -> SlashCommand | None:
    return _registry.get(name)


def list_commands() -> list[SlashCommand]:
    return list(_registry.values())
