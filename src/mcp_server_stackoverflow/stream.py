"""Cancellable wrapper around a command's chunk generator."""

import asyncio
import logging
from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


class CancellableStream:
    """Async iterator over output chunks that can be cancelled from another task.

    Each step of the underlying generator runs in its own asyncio task, so
    ``cancel()`` interrupts whatever request the generator is awaiting (search,
    page fetch or model call) rather than waiting for it to finish. After
    cancellation iteration stops cleanly.
    """

    def __init__(self, source: AsyncGenerator[str, None]):
        self._source = source
        self._step: asyncio.Task | None = None
        self._cancelled = False
        self._closed = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def closed(self) -> bool:
        return self._closed

    def cancel(self) -> None:
        """Stop the stream and abort the in-flight step, if any."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._step is not None and not self._step.done():
            self._step.cancel()
            logger.debug("Cancelled in-flight stream step")

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.cancel()
        step = self._step
        # The generator cannot be closed while a step task is still running it.
        if step is not None and not step.done():
            await asyncio.wait({step})
        await self._source.aclose()

    def __aiter__(self) -> "CancellableStream":
        return self

    async def _next_chunk(self) -> str:
        return await self._source.__anext__()

    async def __anext__(self) -> str:
        if self._cancelled or self._closed:
            await self.aclose()
            raise StopAsyncIteration

        self._step = asyncio.create_task(self._next_chunk())
        try:
            return await self._step
        except StopAsyncIteration:
            self._closed = True
            raise
        except asyncio.CancelledError:
            current = asyncio.current_task()
            # Only swallow cancellation we asked for, not cancellation of the consumer.
            if self._cancelled and (current is None or not current.cancelling()):
                await self.aclose()
                raise StopAsyncIteration from None
            raise
        finally:
            self._step = None

    async def __aenter__(self) -> "CancellableStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def collect(self) -> list[str]:
        """Drain the stream into a list of chunks."""
        return [chunk async for chunk in self]
