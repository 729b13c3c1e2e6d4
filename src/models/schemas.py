import json
import time
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Push-channel event names the client reacts to."""

    THREAD_ID = "thread.id"
    MESSAGE_CREATED = "thread.message.created"
    MESSAGE_DELTA = "thread.message.delta"
    MESSAGE_COMPLETED = "thread.message.completed"
    STREAM_END = "stream.end"
    STREAM_ERROR = "stream.error"

    @classmethod
    def parse(cls, name: str) -> "EventKind | None":
        """Return the kind for an event name, or None for names nobody handles."""
        try:
            return cls(name)
        except ValueError:
            return None


class StreamEvent(BaseModel):
    """One named event on the push channel.

    Attributes:
        event: Event name. Either one of EventKind or a provider event name
            forwarded as-is (e.g. ``thread.run.created``).
        data: JSON payload, passed through unchanged for provider events.
    """

    event: str
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> EventKind | None:
        return EventKind.parse(self.event)

    def encode(self) -> str:
        """Serialize as an SSE frame."""
        return f"event: {self.event}\ndata: {json.dumps(self.data)}\n\n"

    @classmethod
    def thread_id(cls, thread_id: str) -> "StreamEvent":
        return cls(event=EventKind.THREAD_ID.value, data={"threadId": thread_id})

    @classmethod
    def end(cls, message: str = "Stream ended") -> "StreamEvent":
        return cls(event=EventKind.STREAM_END.value, data={"message": message})

    @classmethod
    def error(cls, error: str) -> "StreamEvent":
        return cls(event=EventKind.STREAM_ERROR.value, data={"error": error})


def extract_delta_text(data: dict[str, Any]) -> str:
    """Concatenate the text fragments of a ``thread.message.delta`` payload.

    Only ``type == "text"`` entries carry renderable content; anything else
    (image files, annotations without text) contributes nothing.
    """
    delta = data.get("delta")
    parts = delta.get("content") if isinstance(delta, dict) else None
    if not isinstance(parts, list):
        return ""
    fragments: list[str] = []
    for part in parts:
        if not isinstance(part, dict) or part.get("type") != "text":
            continue
        text = part.get("text")
        value = text.get("value") if isinstance(text, dict) else None
        if isinstance(value, str):
            fragments.append(value)
    return "".join(fragments)


class ChatSession(BaseModel):
    """Persisted summary of one conversation.

    Attributes:
        thread_id: Provider conversation handle, unique key of the session list.
        title: Display label, fixed at creation.
        timestamp: Creation time in epoch milliseconds, used for ordering.
    """

    model_config = ConfigDict(populate_by_name=True)

    thread_id: str = Field(..., alias="threadId")
    title: str
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))


class Message(BaseModel):
    """A message in the client's in-memory conversation view."""

    model_config = ConfigDict(populate_by_name=True)

    role: Literal["user", "assistant"]
    content: str = ""
    is_streaming: bool = Field(default=False, alias="isStreaming")


class HistoryMessage(BaseModel):
    """A stored message as returned by the history endpoint."""

    role: Literal["user", "assistant"]
    content: str


class HistoryResponse(BaseModel):
    history: list[HistoryMessage]


class ErrorResponse(BaseModel):
    error: str
