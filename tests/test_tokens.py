"""Tests for token counting, pruning and image stripping."""

from types import SimpleNamespace

import pytest

from mcp_server_stackoverflow import tokens
from mcp_server_stackoverflow.tokens import count_tokens, prune_string_from_bottom, strip_images


class CharEncoding:
    """tiktoken.Encoding double: one token per character."""

    def encode(self, text, disallowed_special=()):
        return [ord(c) for c in text]

    def decode(self, token_ids):
        return "".join(chr(t) for t in token_ids)


@pytest.fixture
def char_encoding(monkeypatch):
    monkeypatch.setattr(tokens, "_get_encoding", lambda model: CharEncoding())


class TestCountTokens:
    def test_counts_with_model_encoding(self, char_encoding):
        assert count_tokens("gpt-4o", "hello") == 5

    def test_empty_text(self, char_encoding):
        assert count_tokens("gpt-4o", "") == 0


class TestPruneStringFromBottom:
    def test_keeps_text_within_budget(self, char_encoding):
        assert prune_string_from_bottom("m", 10, "short") == "short"

    def test_drops_the_end(self, char_encoding):
        assert prune_string_from_bottom("m", 4, "abcdefgh") == "abcd"

    @pytest.mark.parametrize("max_tokens", [0, -1, -500])
    def test_non_positive_budget_is_empty(self, char_encoding, max_tokens):
        assert prune_string_from_bottom("m", max_tokens, "abcdefgh") == ""


class TestGetEncoding:
    def test_unknown_model_falls_back(self, monkeypatch):
        tokens._get_encoding.cache_clear()
        requested: list[str] = []

        def encoding_for_model(model):
            raise KeyError(model)

        def get_encoding(name):
            requested.append(name)
            return CharEncoding()

        monkeypatch.setattr(tokens.tiktoken, "encoding_for_model", encoding_for_model)
        monkeypatch.setattr(tokens.tiktoken, "get_encoding", get_encoding)
        try:
            tokens._get_encoding("some-local-model")
        finally:
            tokens._get_encoding.cache_clear()

        assert requested == [tokens.FALLBACK_ENCODING]


class TestStripImages:
    def test_plain_string_unchanged(self):
        assert strip_images("hello") == "hello"

    def test_drops_image_parts(self):
        content = [
            {"type": "text", "text": "first"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
            {"type": "text", "text": "second"},
        ]
        assert strip_images(content) == "first\nsecond"

    def test_object_parts(self):
        content = [SimpleNamespace(type="text", text="kept"), SimpleNamespace(type="image_url", image_url="x")]
        assert strip_images(content) == "kept"

    def test_only_images(self):
        assert strip_images([{"type": "image_url", "image_url": {"url": "x"}}]) == ""
