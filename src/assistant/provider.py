"""OpenAI Assistants API adapter.

Wraps the thread / message / run calls the relay needs behind a small
async interface, so the HTTP layer never touches the SDK directly and
tests can substitute an in-memory provider.

Every SDK failure is translated here:

- ``openai.NotFoundError`` becomes ``ThreadNotFoundError``
- any other ``openai.OpenAIError`` becomes ``ProviderError``

Payloads leave this module as plain JSON-compatible dicts
(``model_dump(mode="json")``), which is the shape forwarded on the
push channel.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from src.assistant.config import AssistantConfig, get_assistant_config

logger = logging.getLogger(__name__)

DEFAULT_ASSISTANT_NAME = "Helpful Assistant"
DEFAULT_INSTRUCTIONS = "You are helpful assistant that can help with tasks and questions."
DEFAULT_MODEL = "gpt-4o-mini"


class ProviderError(Exception):
    """Raised when the assistant provider rejects or fails a call."""


class ThreadNotFoundError(ProviderError):
    """Raised when the provider does not recognize a thread id."""


@asynccontextmanager
async def _translate_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except openai.NotFoundError as e:
        raise ThreadNotFoundError(f"{action}: {e.message}") from e
    except openai.OpenAIError as e:
        raise ProviderError(f"{action}: {e}") from e


class AssistantProvider:
    """Async facade over the Assistants API for one configured assistant."""

    def __init__(
        self,
        config: AssistantConfig | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Optional configuration. Read from the environment on first
                use when not provided, so a missing key fails the call, not
                the construction.
            client: Optional preconfigured SDK client.
        """
        self._config = config
        self._client = client

    @property
    def config(self) -> AssistantConfig:
        """Configuration, read from the environment on first use.

        Raises:
            ProviderError: If the environment does not hold a valid configuration.
        """
        if self._config is None:
            try:
                self._config = get_assistant_config()
            except ValidationError as e:
                raise ProviderError(f"Invalid assistant configuration: {e}") from e
        return self._config

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.config.api_key, base_url=self.config.base_url)
        return self._client

    @property
    def assistant_id(self) -> str:
        if not self.config.assistant_id:
            raise ProviderError("No assistant configured. Set OPENAI_ASSISTANT_ID in .env")
        return self.config.assistant_id

    async def create_thread(self) -> str:
        """Create a new conversation thread and return its id."""
        async with _translate_errors("Failed to create thread"):
            thread = await self.client.beta.threads.create()
        return thread.id

    async def add_user_message(self, thread_id: str, content: str) -> None:
        async with _translate_errors(f"Failed to add message to thread {thread_id}"):
            await self.client.beta.threads.messages.create(
                thread_id,
                role="user",
                content=content,
            )

    async def stream_run(self, thread_id: str) -> AsyncGenerator[tuple[str, dict[str, Any]]]:
        """Run the assistant on a thread and yield its events.

        Yields:
            ``(event_name, payload)`` pairs in upstream order.
        """
        assistant_id = self.assistant_id
        async with (
            _translate_errors(f"Run failed on thread {thread_id}"),
            self.client.beta.threads.runs.stream(
                thread_id=thread_id,
                assistant_id=assistant_id,
            ) as stream,
        ):
            async for event in stream:
                yield event.event, event.data.model_dump(mode="json")

    async def list_messages(self, thread_id: str) -> list[dict[str, Any]]:
        """List every message of a thread in chronological order."""
        messages: list[dict[str, Any]] = []
        async with _translate_errors(f"Failed to list messages for thread {thread_id}"):
            async for message in self.client.beta.threads.messages.list(
                thread_id,
                order="asc",
            ):
                messages.append(message.model_dump(mode="json"))
        return messages

    async def create_assistant(
        self,
        name: str = DEFAULT_ASSISTANT_NAME,
        instructions: str = DEFAULT_INSTRUCTIONS,
        model: str = DEFAULT_MODEL,
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        """Create an assistant and return its id."""
        async with _translate_errors("Failed to create assistant"):
            assistant = await self.client.beta.assistants.create(
                name=name,
                instructions=instructions,
                model=model,
                tools=tools if tools is not None else [{"type": "code_interpreter"}],
            )
        logger.info(f"Created assistant {assistant.id} ({name})")
        return assistant.id

    async def update_assistant(
        self,
        assistant_id: str | None = None,
        name: str | None = None,
        instructions: str | None = None,
        model: str = DEFAULT_MODEL,
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        """Update an assistant (the configured one by default) and return its id."""
        target = assistant_id or self.assistant_id
        changes: dict[str, Any] = {
            "model": model,
            "tools": tools if tools is not None else [{"type": "file_search"}],
        }
        if name is not None:
            changes["name"] = name
        if instructions is not None:
            changes["instructions"] = instructions

        async with _translate_errors(f"Failed to update assistant {target}"):
            assistant = await self.client.beta.assistants.update(target, **changes)
        logger.info(f"Updated assistant {assistant.id}")
        return assistant.id

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


# Module-level singleton instance
_provider: AssistantProvider | None = None


def get_assistant_provider() -> AssistantProvider:
    """Get or create the global assistant provider.

    Used as a FastAPI dependency so tests can override it.
    """
    global _provider
    if _provider is None:
        _provider = AssistantProvider()
    return _provider


async def close_assistant_provider() -> None:
    """Close the global provider's HTTP client, if one was created."""
    global _provider
    if _provider is not None:
        await _provider.close()
        _provider = None
