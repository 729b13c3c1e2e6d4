"""Minimal Server-Sent Events reader for named events with JSON data."""

import json
from collections.abc import AsyncGenerator, AsyncIterable

from src.models.schemas import StreamEvent

DEFAULT_EVENT = "message"


class SSEDecodeError(ValueError):
    """Raised when an event's data is not a JSON object."""


def _build_event(name: str, data_lines: list[str]) -> StreamEvent:
    raw = "\n".join(data_lines)
    try:
        data = json.loads(raw) if raw else {}
    except json.JSONDecodeError as e:
        raise SSEDecodeError(f"Invalid JSON in {name} event: {e}") from e
    if not isinstance(data, dict):
        raise SSEDecodeError(f"Expected a JSON object in {name} event")
    return StreamEvent(event=name, data=data)


async def iter_sse_events(lines: AsyncIterable[str]) -> AsyncGenerator[StreamEvent]:
    """Group raw SSE lines into StreamEvents.

    Comment lines (``:keepalive``) and unknown fields are skipped. A frame
    without data lines produces nothing.
    """
    name = DEFAULT_EVENT
    data_lines: list[str] = []

    async for line in lines:
        line = line.rstrip("\r")
        if not line:
            if data_lines:
                yield _build_event(name, data_lines)
            name = DEFAULT_EVENT
            data_lines = []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        value = value.removeprefix(" ")
        if field == "event":
            name = value
        elif field == "data":
            data_lines.append(value)

    if data_lines:
        yield _build_event(name, data_lines)
