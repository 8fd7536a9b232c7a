"""Response streamer: send sources and the question to the model and relay its answer."""

from collections.abc import AsyncIterator, Sequence

from .models import ChatMessage
from .prompts import get_answer_prompt
from .providers import ChatModel
from .tokens import strip_images


def build_messages(user_input: str, history: Sequence[ChatMessage], sources: Sequence[str]) -> list[ChatMessage]:
    """History, then one turn per source, then the instruction turn."""
    return [
        *history,
        *(ChatMessage(role="user", content=source) for source in sources),
        ChatMessage(role="user", content=get_answer_prompt(user_input)),
    ]


class ResponseStreamer:
    def __init__(self, llm: ChatModel):
        self.llm = llm

    async def stream(self, user_input: str, history: Sequence[ChatMessage], sources: Sequence[str]) -> AsyncIterator[str]:
        """Yield the model's answer chunk by chunk, with image parts removed."""
        messages = build_messages(user_input, history, sources)
        async for chunk in self.llm.stream_chat(messages):
            yield strip_images(chunk.content)
