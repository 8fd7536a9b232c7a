"""Tests for the response streamer."""

import pytest

from mcp_server_stackoverflow.models import ChatMessage
from mcp_server_stackoverflow.prompts import ANSWER_INSTRUCTIONS, get_answer_prompt
from mcp_server_stackoverflow.streamer import ResponseStreamer, build_messages

pytestmark = [pytest.mark.anyio]


def test_build_messages_order():
    history = [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello")]
    messages = build_messages("my question", history, ["source one", "source two"])

    assert messages[:2] == history
    assert [m.content for m in messages[2:4]] == ["source one", "source two"]
    assert all(m.role == "user" for m in messages[2:])
    assert messages[-1].content == get_answer_prompt("my question")
    assert len(messages) == 5


def test_answer_prompt_wraps_input():
    prompt = get_answer_prompt("How do I sort a dict?")
    assert prompt.startswith(ANSWER_INSTRUCTIONS)
    assert prompt.endswith("How do I sort a dict?\n")


async def test_stream_yields_chunks_in_order(make_llm):
    llm = make_llm(chunks=["a", "b", "c"])
    chunks = [chunk async for chunk in ResponseStreamer(llm).stream("q", [], ["src"])]
    assert chunks == ["a", "b", "c"]
    assert len(llm.calls) == 1


async def test_stream_strips_images(make_llm):
    llm = make_llm(
        chunks=[
            [{"type": "text", "text": "See"}, {"type": "image_url", "image_url": {"url": "data:,"}}],
            " this.",
        ]
    )
    chunks = [chunk async for chunk in ResponseStreamer(llm).stream("q", [], [])]
    assert chunks == ["See", " this."]
