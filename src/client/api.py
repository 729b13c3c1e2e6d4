"""HTTP client for the relay API, used by the chat UI."""

import logging
import os
from collections.abc import AsyncGenerator
from urllib.parse import quote

import httpx

from src.client.sse import SSEDecodeError, iter_sse_events
from src.models.schemas import Message, StreamEvent

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
REQUEST_TIMEOUT = 120.0


class TransportError(Exception):
    """Raised when the push channel fails outside the event protocol."""


class HistoryFetchError(Exception):
    """Raised when a thread's history cannot be loaded."""


class ChatApiClient:
    """Opens push channels and fetches thread history."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def open_stream(
        self,
        message: str,
        thread_id: str | None = None,
    ) -> AsyncGenerator[StreamEvent]:
        """Open ``/chat/streaming`` and yield its events as they arrive.

        Closing the generator closes the underlying response.

        Raises:
            TransportError: On connection failure, a non-2xx response or
                undecodable event data.
        """
        params = {"message": message, "threadId": thread_id or ""}
        try:
            async with self._client.stream(
                "GET",
                "/chat/streaming",
                params=params,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise TransportError(f"HTTP {response.status_code}: {body.strip()}")
                async for event in iter_sse_events(response.aiter_lines()):
                    yield event
        except httpx.HTTPError as e:
            raise TransportError(f"Connection failed: {e}") from e
        except SSEDecodeError as e:
            raise TransportError(str(e)) from e

    async def fetch_history(self, thread_id: str) -> list[Message]:
        """Load a thread's stored messages, all finalized.

        A response without a ``history`` list yields an empty list.

        Raises:
            HistoryFetchError: On connection failure or a non-2xx response,
                with the server's error text when it sent one.
        """
        try:
            response = await self._client.get(f"/chat/history/{quote(thread_id, safe='')}")
        except httpx.HTTPError as e:
            raise HistoryFetchError(f"Connection failed: {e}") from e

        if response.is_error:
            error = f"HTTP error! status: {response.status_code}"
            try:
                error = response.json().get("error") or error
            except ValueError:
                pass
            raise HistoryFetchError(error)

        try:
            data = response.json()
        except ValueError as e:
            raise HistoryFetchError("Malformed history response") from e

        history = data.get("history") if isinstance(data, dict) else None
        if not isinstance(history, list):
            logger.warning("Received invalid history data format.")
            return []

        return [
            Message(
                role="user" if item.get("role") == "user" else "assistant",
                content=item.get("content") if isinstance(item.get("content"), str) else "",
                is_streaming=False,
            )
            for item in history
            if isinstance(item, dict)
        ]

    async def aclose(self) -> None:
        await self._client.aclose()


# Shared by every page; closed when the UI process shuts down.
_api_client: ChatApiClient | None = None


def get_api_client() -> ChatApiClient:
    """Get or create the process-wide relay API client."""
    global _api_client
    if _api_client is None:
        _api_client = ChatApiClient(API_BASE_URL)
    return _api_client


async def close_api_client() -> None:
    """Close the shared client's connection pool, if one was created."""
    global _api_client
    if _api_client is not None:
        await _api_client.aclose()
        _api_client = None
