"""Budget accumulator: keep scraped sources inside the model's context window."""

import logging
from collections.abc import Callable

from .models import AcceptedSource

logger = logging.getLogger(__name__)

# Tokens reserved for the instruction template wrapped around the query.
PROMPT_SAFETY_MARGIN = 200
MAX_SOURCES = 3


class BudgetAccumulator:
    """Accepts blobs one at a time until the token budget or source cap is hit.

    Only the most recently added blob is ever truncated; earlier blobs are
    kept exactly as accepted.
    """

    def __init__(
        self,
        query: str,
        context_length: int,
        count_tokens: Callable[[str], int],
        prune: Callable[[str, int], str],
        max_sources: int = MAX_SOURCES,
        safety_margin: int = PROMPT_SAFETY_MARGIN,
    ):
        """
        Args:
            query: The raw user input; its tokens count against the budget.
            context_length: Token ceiling of the target model.
            count_tokens: Token counter for the target model.
            prune: ``prune(text, max_tokens)`` keeps the first ``max_tokens`` tokens.
                Must return "" for a zero or negative budget.
            max_sources: Cap on accepted blobs.
            safety_margin: Tokens reserved for prompt overhead.
        """
        self.context_length = context_length
        self.count_tokens = count_tokens
        self.prune = prune
        self.max_sources = max_sources
        self.total_tokens = count_tokens(query) + safety_margin
        self.sources: list[AcceptedSource] = []
        self.done = False

    @property
    def remaining(self) -> int:
        return self.context_length - self.total_tokens

    def add(self, url: str, blob: str) -> AcceptedSource:
        """Accept ``blob``, truncating it if it overflows the budget.

        Sets ``done`` once the caller should stop fetching more sources.
        """
        if self.done:
            raise RuntimeError("BudgetAccumulator is full; no more sources can be added")

        new_tokens = self.count_tokens(blob)
        self.total_tokens += new_tokens
        accepted = AcceptedSource(position=len(self.sources) + 1, url=url, content=blob)
        self.sources.append(accepted)

        if self.total_tokens > self.context_length:
            budget = self.context_length - (self.total_tokens - new_tokens)
            accepted.content = self.prune(blob, budget)
            accepted.truncated = True
            self.total_tokens += self.count_tokens(accepted.content) - new_tokens
            self.done = True
            logger.info(f"Source {accepted.position} truncated to {max(budget, 0)} tokens")

        if len(self.sources) >= self.max_sources:
            self.done = True

        return accepted

    @property
    def contents(self) -> list[str]:
        return [source.content for source in self.sources]
