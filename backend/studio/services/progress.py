"""Ordered, one-directional progress feed for a single generation request."""
import asyncio
from typing import AsyncIterator, Optional, Union

from studio.models.events import ErrorEvent, ProgressEvent, ResultEvent, StatusEvent

_CLOSED = object()


class ProgressChannel:
    """FIFO of progress events produced by the dispatcher and drained by the HTTP layer.

    Events come out in exactly the order they were emitted. Iteration ends once
    ``close()`` has been called and every queued event has been consumed.
    """

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Union[ProgressEvent, object]]" = asyncio.Queue()
        self._closed = False

    def emit(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("Cannot emit on a closed progress channel")
        self._queue.put_nowait(event)

    def emit_status(self, message: str, progress: int) -> None:
        self.emit(StatusEvent(status=message, progress=progress))

    def emit_result(self, result: Union[str, list[str]], metadata: Optional[dict] = None) -> None:
        self.emit(ResultEvent(result=result, metadata=metadata or {}))

    def emit_error(self, message: str) -> None:
        self.emit(ErrorEvent(error=message))

    def close(self) -> None:
        """Mark the end of the stream. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
