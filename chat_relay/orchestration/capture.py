"""Stream wrapper that forwards fragments while capturing them."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from types import TracebackType

logger = logging.getLogger(__name__)


def _report_detached_failure(completion: "asyncio.Future[None]") -> None:
    if completion.cancelled():
        return
    error = completion.exception()
    if error is not None:
        logger.error("Stream completion hook failed after its caller was cancelled", exc_info=error)


class CapturingStream:
    """Forwards non-empty fragments from ``source`` and accumulates them.

    ``on_complete`` receives the accumulated text exactly once, when the stream is
    exhausted, fails, is closed by the caller, or its consumer is cancelled. The
    hook runs shielded from cancellation. Normally it finishes before the source
    is released; if the closing task is cancelled while waiting, the hook keeps
    running in the background and the source is released without waiting for it.
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        on_complete: Callable[[str], Awaitable[None]],
    ) -> None:
        self._source = source
        self._on_complete = on_complete
        self._fragments: list[str] = []
        self._closed = False
        self._completion: asyncio.Future[None] | None = None

    @property
    def fragments(self) -> list[str]:
        return list(self._fragments)

    @property
    def text(self) -> str:
        return "".join(self._fragments)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def completion(self) -> "asyncio.Future[None] | None":
        return self._completion

    def __aiter__(self) -> "CapturingStream":
        return self

    async def __anext__(self) -> str:
        while not self._closed:
            try:
                fragment = await self._source.__anext__()
            except BaseException:
                # StopAsyncIteration, provider errors and cancellation all end the run.
                await self.aclose()
                raise
            if fragment:
                self._fragments.append(fragment)
                return fragment
        raise StopAsyncIteration

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._completion = asyncio.ensure_future(self._on_complete(self.text))
            try:
                await asyncio.shield(self._completion)
            except asyncio.CancelledError:
                self._completion.add_done_callback(_report_detached_failure)
                raise
        finally:
            close = getattr(self._source, "aclose", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> "CapturingStream":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
