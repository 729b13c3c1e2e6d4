"""FastAPI endpoints for the assistant relay.

HTTP and streaming routes with async request handling.
Uses Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status
    - GET /chat/streaming: Relay one chat turn as an SSE stream
    - GET /chat/history/{thread_id}: Stored messages of a thread
"""

from src.api.app import app, create_app

__all__ = ["app", "create_app"]
