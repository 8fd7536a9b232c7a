"""Tests for Stack Overflow page extraction."""

import httpx
import pytest

from mcp_server_stackoverflow.exceptions import NetworkError
from mcp_server_stackoverflow.extract import FALLBACK_TITLE, PageExtractor, parse_question_page
from mcp_server_stackoverflow.models import Found, NotFound

URL = "https://stackoverflow.com/questions/1/reverse-a-linked-list"


class TestParseQuestionPage:
    def test_no_post_bodies(self, page):
        result = parse_question_page(page("Reverse a linked list"), URL)
        assert isinstance(result, NotFound)
        assert result.url == URL

    def test_single_post_body(self, page):
        result = parse_question_page(page("Reverse a linked list", "How do I do it?"), URL)
        assert isinstance(result, NotFound)
        assert "found 1" in result.reason

    def test_question_and_answer(self, page):
        result = parse_question_page(page("Reverse a linked list", "How do I do it?", "Iterate with three pointers."), URL)
        assert isinstance(result, Found)
        source = result.source
        assert source.title == "Reverse a linked list"
        assert source.url == URL
        assert source.question == "How do I do it?"
        assert source.answer == "Iterate with three pointers."

    def test_title_with_inline_markup_keeps_spacing(self, page):
        result = parse_question_page(page("How do I use <code>map</code> in Python", "q", "a"), URL)
        assert isinstance(result, Found)
        assert result.source.title == "How do I use map in Python"

    def test_only_first_two_bodies_are_used(self, page):
        result = parse_question_page(page("T", "question", "best answer", "second answer"), URL)
        assert isinstance(result, Found)
        assert result.source.answer == "best answer"
        assert "second answer" not in result.source.render()

    def test_missing_title_falls_back(self):
        html = '<div class="js-post-body">q</div><div class="js-post-body">a</div>'
        result = parse_question_page(html, URL)
        assert isinstance(result, Found)
        assert result.source.title == FALLBACK_TITLE

    def test_render_template(self, page):
        result = parse_question_page(page("Title", "Q body", "A body"), URL)
        assert result.source.render() == f"# Question: [Title]({URL})\n\nQ body\n\n# Best Answer\n\nA body\n"


@pytest.mark.anyio
async def test_extract_requests_html(page):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=page("T", "q", "a"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await PageExtractor(client).extract(URL)

    assert isinstance(result, Found)
    assert seen[0].method == "GET"
    assert seen[0].headers["Accept"] == "text/html"


@pytest.mark.anyio
async def test_extract_error_page_is_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="<html><body>Page not found</body></html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await PageExtractor(client).extract(URL)

    assert isinstance(result, NotFound)


@pytest.mark.anyio
async def test_extract_transport_failure_is_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError):
            await PageExtractor(client).extract(URL)
