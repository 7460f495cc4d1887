"""Tests for ProgressChannel and SSE event rendering."""
import json

import pytest

from studio.models.events import ErrorEvent, ResultEvent, StatusEvent
from studio.services.progress import ProgressChannel


async def _drain(channel: ProgressChannel) -> list:
    return [event async for event in channel]


class TestProgressChannel:
    """Tests for ProgressChannel ordering and closing."""

    @pytest.mark.asyncio
    async def test_events_come_out_in_order(self) -> None:
        channel = ProgressChannel()
        channel.emit_status("one", 5)
        channel.emit_status("two", 10)
        channel.emit_result("/media/a.png", {"type": "image"})
        channel.close()

        events = await _drain(channel)
        assert events == [
            StatusEvent(status="one", progress=5),
            StatusEvent(status="two", progress=10),
            ResultEvent(result="/media/a.png", metadata={"type": "image"}),
        ]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        channel = ProgressChannel()
        channel.emit_error("bad")
        channel.close()
        channel.close()
        assert await _drain(channel) == [ErrorEvent(error="bad")]

    def test_emit_after_close_raises(self) -> None:
        channel = ProgressChannel()
        channel.close()
        with pytest.raises(RuntimeError):
            channel.emit_status("late", 50)

    def test_status_frame(self) -> None:
        frame = StatusEvent(status="Working", progress=40).to_sse()
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"status": "Working", "progress": 40}


class TestEvents:
    """Tests for the event payload shapes."""

    def test_result_with_list(self) -> None:
        frame = ResultEvent(result=["/a", "/b"], metadata={"count": 2}).to_sse()
        payload = json.loads(frame[len("data: "):])
        assert payload == {"result": ["/a", "/b"], "metadata": {"count": 2}}

    def test_error_payload(self) -> None:
        payload = json.loads(ErrorEvent(error="nope").to_sse()[len("data: "):])
        assert payload == {"error": "nope"}

    def test_progress_out_of_range_rejected(self) -> None:
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            StatusEvent(status="x", progress=101)
