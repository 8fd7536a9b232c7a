"""Data models for the Stack Overflow search pipeline."""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

ChatRole = Literal["system", "user", "assistant"]

# A message body is either plain text or a list of parts such as
# {"type": "text", "text": ...} and {"type": "image_url", "image_url": ...}.
MessageContent = str | list[Any]


@dataclass
class ChatMessage:
    """One turn of a conversation sent to the model."""

    role: ChatRole
    content: MessageContent


@dataclass
class ChatChunk:
    """A single piece of streamed model output."""

    content: MessageContent


@dataclass
class SearchResult:
    """An organic search hit. Only the link is consumed."""

    link: str


@dataclass
class ExtractedSource:
    """A question and its best answer scraped from one Stack Overflow page."""

    title: str
    url: str
    question: str
    answer: str

    def render(self) -> str:
        """Format the source as the text blob fed to the model."""
        return f"# Question: [{self.title}]({self.url})\n\n{self.question}\n\n# Best Answer\n\n{self.answer}\n"


@dataclass
class Found:
    """Extraction succeeded."""

    source: ExtractedSource


@dataclass
class NotFound:
    """The page lacked the expected structure; the URL should be skipped."""

    url: str
    reason: str


ExtractionResult = Found | NotFound


@dataclass
class AcceptedSource:
    """A blob kept by the budget accumulator, possibly truncated."""

    position: int  # 1-based
    url: str
    content: str
    truncated: bool = False


class ContextItemId(BaseModel):
    """Stable identifier of a context item."""

    provider_title: str
    item_id: str


class ContextItem(BaseModel):
    """Citation record surfaced to the caller for every accepted source."""

    content: str
    description: str
    name: str
    id: ContextItemId = Field(description="Provider title and per-item identifier (the source URL)")
