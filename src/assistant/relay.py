"""Stream relay: one chat request in, one push channel of events out.

The HTTP response headers are committed before any provider call is
made, so nothing after that point can be reported with a status code.
Every outcome is an in-band event instead, and each channel ends with
exactly one terminal event:

1. ``thread.id`` with the resolved thread, always first, also when the
   caller supplied the thread (the client binds its session on it)
2. provider events, re-tagged with the provider's own event name
3. ``stream.end`` after the upstream run finishes, or ``stream.error``
   on any failure (no automatic retry)
"""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Any, Protocol

from src.models.schemas import EventKind, StreamEvent, extract_delta_text

logger = logging.getLogger(__name__)

GENERIC_STREAM_ERROR = "An internal error occurred during streaming"

RUN_FAILED = "thread.run.failed"
RUN_REQUIRES_ACTION = "thread.run.requires_action"


class ThreadProvider(Protocol):
    """Provider operations the relay depends on."""

    async def create_thread(self) -> str: ...

    async def add_user_message(self, thread_id: str, content: str) -> None: ...

    def stream_run(self, thread_id: str) -> AsyncGenerator[tuple[str, dict[str, Any]]]: ...


class MalformedEventError(Exception):
    """Raised when an upstream event cannot be forwarded."""


class StreamRelay:
    """Brokers one chat request against the assistant provider."""

    def __init__(self, provider: ThreadProvider) -> None:
        self._provider = provider

    async def events(
        self,
        message: str,
        thread_id: str | None = None,
    ) -> AsyncGenerator[StreamEvent]:
        """Yield the push-channel events for one request.

        Args:
            message: Non-empty user message.
            thread_id: Existing thread to continue, or None to start a new one.

        Yields:
            StreamEvents, ``thread.id`` first and one terminal event last.
        """
        try:
            if thread_id:
                resolved = thread_id
                logger.info(f"Using existing thread: {resolved}")
            else:
                resolved = await self._provider.create_thread()
                logger.info(f"New thread created: {resolved}")

            yield StreamEvent.thread_id(resolved)

            await self._provider.add_user_message(resolved, message)
            logger.info(f"User message added to thread: {resolved}")

            async with aclosing(self._provider.stream_run(resolved)) as upstream:
                async for name, payload in upstream:
                    yield self._forward(name, payload)

                    if name == RUN_FAILED:
                        last_error = payload.get("last_error") or {}
                        reason = last_error.get("message") or "Assistant run failed"
                        logger.error(f"Run failed on thread {resolved}: {reason}")
                        yield StreamEvent.error(reason)
                        return

            logger.info(f"Stream ended for thread {resolved}")
            yield StreamEvent.end()

        except Exception as e:
            logger.exception("Error during streaming chat")
            yield StreamEvent.error(str(e) or GENERIC_STREAM_ERROR)

    async def encoded(
        self,
        message: str,
        thread_id: str | None = None,
    ) -> AsyncGenerator[str]:
        """Yield SSE frames, ready to be written to the response body."""
        async for event in self.events(message, thread_id):
            yield event.encode()

    def _forward(self, name: Any, payload: Any) -> StreamEvent:
        if not isinstance(name, str) or not name:
            raise MalformedEventError(f"Upstream event without a name: {name!r}")
        if not isinstance(payload, dict):
            raise MalformedEventError(f"Upstream event {name} has a non-object payload")
        try:
            json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise MalformedEventError(f"Upstream event {name} is not JSON serializable") from e

        if name == EventKind.MESSAGE_DELTA.value:
            logger.debug(f"Delta chunk: {extract_delta_text(payload)!r}")
        elif name == RUN_REQUIRES_ACTION:
            # Tool calls are not answered; the run stays pending upstream.
            logger.warning(f"Run requires action: {payload.get('id')}")

        return StreamEvent(event=name, data=payload)
