"""Chat client: consumes the relay's push channel and keeps sessions.

Components:
    - sse: SSE line parser producing StreamEvents
    - api: HTTP client for /chat/streaming and /chat/history
    - session_store: Persisted, recency-ordered session list
    - controller: Stream state machine and session coordination

Contains no UI code; the NiceGUI page renders ChatController state.
"""

from src.client.api import ChatApiClient, HistoryFetchError, TransportError
from src.client.controller import ActiveStream, ChatController, StreamState
from src.client.session_store import SessionStore, make_title

__all__ = [
    "ActiveStream",
    "ChatApiClient",
    "ChatController",
    "HistoryFetchError",
    "SessionStore",
    "StreamState",
    "TransportError",
    "make_title",
]
