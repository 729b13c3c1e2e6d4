"""Server-side history loading for a conversation thread."""

import logging
from typing import Any, Protocol

from src.models.schemas import HistoryMessage

logger = logging.getLogger(__name__)


class MessageLister(Protocol):
    async def list_messages(self, thread_id: str) -> list[dict[str, Any]]: ...


def extract_message_text(message: dict[str, Any]) -> str:
    """Return the first text value of a provider message, or an empty string."""
    for part in message.get("content") or []:
        if isinstance(part, dict) and part.get("type") == "text":
            value = (part.get("text") or {}).get("value")
            if isinstance(value, str):
                return value
    return ""


def format_history(messages: list[dict[str, Any]]) -> list[HistoryMessage]:
    """Map provider messages to ``{role, content}``, dropping ones without text.

    Order is preserved. Roles other than ``user`` render as ``assistant``.
    """
    history: list[HistoryMessage] = []
    for message in messages:
        content = extract_message_text(message)
        if not content:
            continue
        role = "user" if message.get("role") == "user" else "assistant"
        history.append(HistoryMessage(role=role, content=content))
    return history


async def load_history(provider: MessageLister, thread_id: str) -> list[HistoryMessage]:
    """Fetch and normalize the backlog of a thread.

    Raises:
        ThreadNotFoundError: If the provider does not know the thread.
        ProviderError: On any other provider failure.
    """
    logger.info(f"Fetching history for thread ID: {thread_id}")
    messages = await provider.list_messages(thread_id)
    history = format_history(messages)
    logger.info(f"Found {len(history)} messages for thread {thread_id}")
    return history
