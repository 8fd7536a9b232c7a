"""The ``so`` slash command: answer a question from Stack Overflow search results."""

import logging
from collections.abc import AsyncGenerator

from ..budget import BudgetAccumulator
from ..extract import PageExtractor
from ..models import ContextItem, ContextItemId, NotFound
from ..search import SearchClient
from ..streamer import ResponseStreamer
from ..tokens import prune_string_from_bottom
from .slash import SlashCommand, SlashCommandContext, register

logger = logging.getLogger(__name__)

PROVIDER_TITLE = "so"


async def run_stackoverflow(ctx: SlashCommandContext) -> AsyncGenerator[str, None]:
    links = await SearchClient(ctx.fetch, ctx.proxy_url).dispatch(ctx.input)

    extractor = PageExtractor(ctx.fetch)
    budget = BudgetAccumulator(
        query=ctx.input,
        context_length=ctx.llm.context_length,
        count_tokens=ctx.llm.count_tokens,
        prune=lambda text, max_tokens: prune_string_from_bottom(ctx.llm.model, max_tokens, text),
        max_sources=ctx.max_sources,
    )

    for link in links:
        result = await extractor.extract(link)
        if isinstance(result, NotFound):
            continue

        accepted = budget.add(link, result.source.render())
        ctx.add_context_item(
            ContextItem(
                content=accepted.content,
                description="StackOverflow Answer",
                name=f"StackOverflow {accepted.position}",
                id=ContextItemId(provider_title=PROVIDER_TITLE, item_id=accepted.url),
            )
        )

        if budget.done:
            break

    logger.info(f"Answering from {len(budget.sources)} source(s)")
    async for chunk in ResponseStreamer(ctx.llm).stream(ctx.input, ctx.history, budget.contents):
        yield chunk


StackOverflowSlashCommand = register(
    SlashCommand(
        name="so",
        description="Search Stack Overflow",
        run=run_stackoverflow,
    )
)
