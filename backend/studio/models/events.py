"""Progress events streamed to the caller as Server-Sent Events."""
from typing import Any, Union

from pydantic import BaseModel, Field

SSE_DATA_PREFIX = "data: "


class _Event(BaseModel):
    def to_sse(self) -> str:
        """Render as one SSE frame: ``data: <json>`` followed by a blank line."""
        return f"{SSE_DATA_PREFIX}{self.model_dump_json()}\n\n"


class StatusEvent(_Event):
    """Intermediate progress update."""

    status: str
    progress: int = Field(..., ge=0, le=100)


class ResultEvent(_Event):
    """Terminal success payload."""

    result: Union[str, list[str]]
    metadata: dict[str, Any] = Field(default_factory=dict)


class ErrorEvent(_Event):
    """Terminal failure."""

    error: str


ProgressEvent = Union[StatusEvent, ResultEvent, ErrorEvent]
