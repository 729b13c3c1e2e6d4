"""Pydantic models shared by the relay server and the chat client.

Models:
    - EventKind: Push-channel event names the client dispatches on
    - StreamEvent: One named SSE event with its JSON payload
    - ChatSession: Persisted conversation summary (thread id, title, timestamp)
    - Message: In-memory chat message, optionally still streaming
    - HistoryMessage / HistoryResponse: Stored backlog of a conversation
"""

from src.models.schemas import (
    ChatSession,
    ErrorResponse,
    EventKind,
    HistoryMessage,
    HistoryResponse,
    Message,
    StreamEvent,
    extract_delta_text,
)

__all__ = [
    "ChatSession",
    "ErrorResponse",
    "EventKind",
    "HistoryMessage",
    "HistoryResponse",
    "Message",
    "StreamEvent",
    "extract_delta_text",
]
