"""Client-side stream consumer and session coordinator.

``ChatController`` owns the in-memory message list of the visible
conversation and at most one live push channel. Each ``send`` creates an
``ActiveStream`` that moves through::

    CONNECTING -> STREAMING -> SETTLED

``SETTLED`` is reached on ``thread.message.completed``, ``stream.end``,
``stream.error``, a transport failure or cancellation, and always leaves
the input usable again with the channel closed. Events are dispatched by
``EventKind`` to one handler each; events from a stream that is already
settled are dropped, so an abandoned channel can never touch the list.

A stream started without an active session carries a pending session
title. The first ``thread.id`` consumes it to persist exactly one
``ChatSession``; repeated ``thread.id`` events find nothing pending.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing, suppress
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.client.api import ChatApiClient, HistoryFetchError, TransportError
from src.client.session_store import SessionStore, make_title
from src.models.schemas import ChatSession, EventKind, Message, StreamEvent, extract_delta_text

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Connection error with the assistant."


class StreamState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    SETTLED = "settled"


@dataclass
class ActiveStream:
    """State of one push channel, from ``send`` until it settles."""

    message: str
    thread_id: str | None
    pending_session_title: str | None = None
    state: StreamState = StreamState.CONNECTING
    message_id: str | None = None
    task: asyncio.Task | None = None

    @property
    def closed(self) -> bool:
        return self.state is StreamState.SETTLED

    @property
    def awaiting_session_save(self) -> bool:
        return self.pending_session_title is not None


class ChatController:
    """Drives the message list, loading/error state and the session list."""

    def __init__(
        self,
        api: ChatApiClient,
        sessions: SessionStore,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._api = api
        self.sessions = sessions
        self.on_change = on_change

        self.messages: list[Message] = []
        self.active_thread_id: str | None = None
        self.error: str | None = None
        self.loading_history = False
        self.history_failed = False

        self._stream: ActiveStream | None = None
        self._history_token = 0
        self._handlers: dict[EventKind, Callable[[ActiveStream, dict[str, Any]], None]] = {
            EventKind.THREAD_ID: self._on_thread_id,
            EventKind.MESSAGE_CREATED: self._on_message_created,
            EventKind.MESSAGE_DELTA: self._on_message_delta,
            EventKind.MESSAGE_COMPLETED: self._on_message_completed,
            EventKind.STREAM_END: self._on_stream_end,
            EventKind.STREAM_ERROR: self._on_stream_error,
        }

    @property
    def state(self) -> StreamState:
        return self._stream.state if self._stream else StreamState.IDLE

    @property
    def stream(self) -> ActiveStream | None:
        return self._stream

    @property
    def is_busy(self) -> bool:
        return self.loading_history or self.state in (
            StreamState.CONNECTING,
            StreamState.STREAMING,
        )

    # --- user actions -----------------------------------------------------

    def send(self, text: str) -> bool:
        """Start a new turn. Returns False when the text is blank or a turn is running."""
        if not text.strip() or self.is_busy:
            return False

        self._cancel_stream()
        self.error = None
        self.messages.append(Message(role="user", content=text))
        self.messages.append(Message(role="assistant", content="", is_streaming=True))

        stream = ActiveStream(
            message=text,
            thread_id=self.active_thread_id,
            pending_session_title=None if self.active_thread_id else make_title(text),
        )
        self._stream = stream
        stream.task = asyncio.create_task(self._consume(stream))
        self._notify()
        return True

    async def switch_session(self, thread_id: str) -> None:
        """Show another conversation, cancelling any running turn first."""
        if thread_id == self.active_thread_id and not self.history_failed:
            return
        if self._stream and not self._stream.closed and self._stream.thread_id == thread_id:
            return

        logger.info(f"Selecting chat: {thread_id}")
        self._cancel_stream()
        self._stream = None
        self.active_thread_id = thread_id
        self.messages = []
        self.error = None
        await self._load_history(thread_id)

    async def open_session(self, thread_id: str) -> None:
        """Switch to a session from the stored list; unknown ids are ignored."""
        if thread_id not in self.sessions:
            logger.warning(f"Ignoring selection of unknown chat: {thread_id}")
            return
        await self.switch_session(thread_id)

    async def reload_history(self) -> None:
        """Retry loading the active conversation after a failure."""
        if self.active_thread_id is None or self.is_busy:
            return
        self._cancel_stream()
        self._stream = None
        self.messages = []
        self.error = None
        await self._load_history(self.active_thread_id)

    def new_chat(self) -> None:
        self._cancel_stream()
        self._stream = None
        self._history_token += 1
        self.active_thread_id = None
        self.messages = []
        self.error = None
        self.loading_history = False
        self.history_failed = False
        self._notify()

    def delete_session(self, thread_id: str) -> None:
        self.sessions.remove(thread_id)
        if thread_id == self.active_thread_id:
            self.new_chat()
        else:
            self._notify()

    def delete_all(self) -> None:
        logger.info("Deleting all chat sessions...")
        self.sessions.clear()
        self.new_chat()

    async def wait(self) -> None:
        """Wait until the current stream's reader has finished."""
        if self._stream and self._stream.task:
            with suppress(asyncio.CancelledError):
                await self._stream.task

    def close(self) -> None:
        """Close any open channel, e.g. when the page goes away."""
        self._cancel_stream()

    # --- stream consumption -----------------------------------------------

    async def _consume(self, stream: ActiveStream) -> None:
        try:
            async with aclosing(self._api.open_stream(stream.message, stream.thread_id)) as events:
                async for event in events:
                    if stream.closed:
                        break
                    self.dispatch(stream, event)
                    if stream.closed:
                        break
            if not stream.closed:
                raise TransportError("Channel closed without a terminal event")
        except TransportError as e:
            if stream.closed:
                return
            logger.error(f"SSE - EventSource failed: {e}")
            self._fail(stream, CONNECTION_ERROR)
        except Exception:
            if stream.closed:
                return
            logger.exception("SSE - Failed to apply stream event")
            self._fail(stream, CONNECTION_ERROR)

    def dispatch(self, stream: ActiveStream, event: StreamEvent) -> None:
        """Apply one event to the controller if its stream is still open."""
        if stream.closed or stream is not self._stream:
            return
        kind = event.kind
        if kind is None:
            logger.debug(f"SSE - Ignoring event {event.event}")
            return
        self._handlers[kind](stream, event.data)

    def _on_thread_id(self, stream: ActiveStream, data: dict[str, Any]) -> None:
        thread_id = data.get("threadId")
        if not isinstance(thread_id, str) or not thread_id:
            logger.warning(f"SSE - thread.id event without a thread id: {data}")
            return

        logger.info(f"SSE - Received thread ID: {thread_id}")
        stream.thread_id = stream.thread_id or thread_id
        if self.active_thread_id is None:
            self.active_thread_id = thread_id

        if stream.awaiting_session_save:
            title = stream.pending_session_title
            stream.pending_session_title = None
            self.sessions.upsert(ChatSession(thread_id=thread_id, title=title))
            logger.info(f"New chat session saved: {thread_id}")
        self._notify()

    def _on_message_created(self, stream: ActiveStream, data: dict[str, Any]) -> None:
        stream.message_id = data.get("id")
        logger.info(f"SSE - Assistant message created: {stream.message_id}")

    def _on_message_delta(self, stream: ActiveStream, data: dict[str, Any]) -> None:
        if stream.state not in (StreamState.CONNECTING, StreamState.STREAMING):
            return
        stream.state = StreamState.STREAMING

        text = extract_delta_text(data)
        placeholder = self._placeholder()
        if not text or placeholder is None:
            return
        placeholder.content += text
        self._notify()

    def _on_message_completed(self, stream: ActiveStream, data: dict[str, Any]) -> None:
        logger.info("SSE - Message stream completed.")
        self._finalize_placeholder()
        self._settle(stream)

    def _on_stream_end(self, stream: ActiveStream, data: dict[str, Any]) -> None:
        logger.info("SSE - Backend signaled stream end.")
        self._finalize_placeholder()
        self._settle(stream)

    def _on_stream_error(self, stream: ActiveStream, data: dict[str, Any]) -> None:
        logger.error(f"SSE - Error from server stream: {data}")
        self._fail(stream, f"Assistant Error: {data.get('error') or 'Unknown stream error'}")

    # --- helpers ----------------------------------------------------------

    def _placeholder(self) -> Message | None:
        if self.messages and self.messages[-1].is_streaming:
            return self.messages[-1]
        return None

    def _finalize_placeholder(self) -> None:
        placeholder = self._placeholder()
        if placeholder is not None:
            placeholder.is_streaming = False

    def _remove_placeholder(self) -> None:
        if self._placeholder() is not None:
            self.messages.pop()

    def _fail(self, stream: ActiveStream, error: str) -> None:
        self._remove_placeholder()
        self.error = error
        self._settle(stream)

    def _settle(self, stream: ActiveStream) -> None:
        stream.state = StreamState.SETTLED
        task = stream.task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._notify()

    def _cancel_stream(self) -> None:
        stream = self._stream
        if stream is None or stream.closed:
            return
        logger.info("Closing active stream")
        self._remove_placeholder()
        self._settle(stream)

    async def _load_history(self, thread_id: str) -> None:
        self._history_token += 1
        token = self._history_token
        self.loading_history = True
        self._notify()

        try:
            history = await self._api.fetch_history(thread_id)
        except HistoryFetchError as e:
            if token != self._history_token:
                return
            logger.error(f"Failed to fetch history for thread {thread_id}: {e}")
            self.messages = []
            self.error = f"Failed to load chat history: {e}"
            self.history_failed = True
        else:
            if token != self._history_token:
                return
            logger.info(f"Fetched {len(history)} messages for thread {thread_id}.")
            self.messages = history
            self.history_failed = False
        finally:
            if token == self._history_token:
                self.loading_history = False
                self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
