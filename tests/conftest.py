"""Pytest configuration and fixtures for mcp-server-stackoverflow tests."""

from collections.abc import Callable

import httpx
import pytest

from mcp_server_stackoverflow.models import ChatChunk, ChatMessage

PROXY_URL = "http://proxy.test/"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: End-to-end tests requiring network access and real API keys")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user and workspace config lookups at an empty temp directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path / ".config"))
    monkeypatch.chdir(tmp_path)

    import mcp_server_stackoverflow.config as config_mod

    config_mod.get_config.cache_clear()
    yield tmp_path
    config_mod.get_config.cache_clear()


class FakeChatModel:
    """ChatModel double: one token per whitespace-separated word."""

    def __init__(self, context_length: int = 100_000, chunks=("The answer.",), model: str = "fake-model"):
        self.model = model
        self.context_length = context_length
        self.chunks = list(chunks)
        self.calls: list[list[ChatMessage]] = []

    def count_tokens(self, text: str) -> int:
        return len(text.split())

    async def stream_chat(self, messages):
        self.calls.append(list(messages))
        for chunk in self.chunks:
            yield ChatChunk(content=chunk)


def word_prune(model: str, max_tokens: int, text: str) -> str:
    """Word-level stand-in for prune_string_from_bottom."""
    return " ".join(text.split()[: max(max_tokens, 0)])


def so_page(title: str, *bodies: str) -> str:
    """Minimal Stack Overflow question page markup."""
    posts = "".join(f'<div class="s-prose js-post-body" itemprop="text"><p>{body}</p></div>' for body in bodies)
    return f'<html><body><div id="question-header"><h1 class="fs-headline1"><a href="#">{title}</a></h1></div>{posts}</body></html>'


@pytest.fixture
def fake_llm() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def page():
    return so_page


@pytest.fixture
def word_pruning(monkeypatch):
    """Replace the tiktoken pruner with a word-based one in the so command."""
    monkeypatch.setattr("mcp_server_stackoverflow.commands.stackoverflow.prune_string_from_bottom", word_prune)


@pytest.fixture
def mock_http() -> Callable[..., tuple[httpx.AsyncClient, list[tuple[str, str]]]]:
    """Build an AsyncClient backed by a fake search proxy and fake pages.

    Returns (client, requests) where ``requests`` records (method, url) for
    every request in order.
    """

    def factory(links: list[str], pages: dict[str, str], search_body: str | None = None):
        requests: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, str(request.url)))
            if request.method == "POST" and request.url.path == "/search":
                if search_body is not None:
                    return httpx.Response(200, text=search_body)
                return httpx.Response(200, json={"organic": [{"link": link, "title": "t", "position": i} for i, link in enumerate(links)]})
            html = pages.get(str(request.url))
            if html is None:
                return httpx.Response(404, text="<html><body>Page not found</body></html>")
            return httpx.Response(200, text=html, headers={"Content-Type": "text/html"})

        return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests

    return factory


@pytest.fixture
def make_llm() -> type[FakeChatModel]:
    return FakeChatModel
