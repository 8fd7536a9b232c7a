"""Token counting, bottom pruning and image stripping for model input/output."""

import logging
from functools import lru_cache
from typing import Any

import tiktoken

from .models import MessageContent

logger = logging.getLogger(__name__)

FALLBACK_ENCODING = "cl100k_base"


@lru_cache(maxsize=32)
def _get_encoding(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        logger.debug(f"No tiktoken encoding registered for {model!r}, using {FALLBACK_ENCODING}")
        return tiktoken.get_encoding(FALLBACK_ENCODING)


def count_tokens(model: str, text: str) -> int:
    """Count tokens in ``text`` with the tokenizer for ``model``."""
    if not text:
        return 0
    return len(_get_encoding(model).encode(text, disallowed_special=()))


def prune_string_from_bottom(model: str, max_tokens: int, text: str) -> str:
    """Keep the first ``max_tokens`` tokens of ``text``, dropping the end.

    A zero or negative budget yields the empty string.
    """
    if max_tokens <= 0:
        return ""

    encoding = _get_encoding(model)
    tokens = encoding.encode(text, disallowed_special=())
    if len(tokens) <= max_tokens:
        return text
    return encoding.decode(tokens[:max_tokens])


def _part_text(part: Any) -> str | None:
    if isinstance(part, str):
        return part
    if isinstance(part, dict):
        if part.get("type") == "text":
            return part.get("text", "")
        return None
    if getattr(part, "type", None) == "text":
        return getattr(part, "text", "")
    return None


def strip_images(content: MessageContent) -> str:
    """Flatten message content to text, dropping image parts."""
    if isinstance(content, str):
        return content
    texts = [text for text in (_part_text(part) for part in content) if text is not None]
    return "\n".join(texts)
