"""Unit tests for AssistantProvider, AssistantConfig and the admin CLI."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
from pydantic import ValidationError

from src.assistant.admin import build_parser, run_command
from src.assistant.config import AssistantConfig
from src.assistant.provider import AssistantProvider, ProviderError, ThreadNotFoundError


def api_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    request = httpx.Request("GET", "https://api.openai.com/v1/threads/thread_x/messages")
    return cls("No thread found", response=httpx.Response(status, request=request), body=None)


def model(data: dict[str, Any]) -> MagicMock:
    item = MagicMock()
    item.model_dump.return_value = data
    return item


class FakePage:
    """Async-iterable page of SDK objects."""

    def __init__(self, items: list[Any], error: Exception | None = None) -> None:
        self._items = items
        self._error = error

    async def __aiter__(self):
        for item in self._items:
            yield item
        if self._error is not None:
            raise self._error


class FakeRunStream:
    """Async context manager yielding SDK-style stream events."""

    def __init__(self, events: list[tuple[str, dict[str, Any]]]) -> None:
        self._events = events
        self.closed = False

    async def __aenter__(self) -> "FakeRunStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def __aiter__(self):
        for name, data in self._events:
            event = MagicMock()
            event.event = name
            event.data = model(data)
            yield event


@pytest.fixture
def config() -> AssistantConfig:
    return AssistantConfig(api_key="sk-test", assistant_id="asst_123")


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def provider(config: AssistantConfig, client: MagicMock) -> AssistantProvider:
    return AssistantProvider(config=config, client=client)


class TestAssistantConfig:
    """Tests for AssistantConfig validation."""

    def test_valid_config(self) -> None:
        config = AssistantConfig(api_key="  sk-key  ", assistant_id=" asst_1 ", base_url=None)

        assert config.api_key == "sk-key"
        assert config.assistant_id == "asst_1"

    def test_missing_api_key_fails(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AssistantConfig(api_key="", assistant_id="asst_1")

        assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_whitespace_api_key_fails(self) -> None:
        with pytest.raises(ValidationError):
            AssistantConfig(api_key="   ", assistant_id="asst_1")

    def test_blank_assistant_id_is_none(self) -> None:
        assert AssistantConfig(api_key="sk", assistant_id="  ").assistant_id is None

    def test_reads_environment(self) -> None:
        env = {"OPENAI_API_KEY": "sk-env", "OPENAI_ASSISTANT_ID": "asst_env", "LLM_BASE_URL": ""}
        with patch.dict("os.environ", env, clear=True):
            config = AssistantConfig()

        assert config.api_key == "sk-env"
        assert config.assistant_id == "asst_env"
        assert config.base_url is None


class TestThreadCalls:
    """Tests for thread and message calls."""

    async def test_create_thread_returns_id(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.threads.create = AsyncMock(return_value=MagicMock(id="thread_abc"))

        assert await provider.create_thread() == "thread_abc"

    async def test_add_user_message(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.threads.messages.create = AsyncMock()

        await provider.add_user_message("thread_abc", "hello")

        client.beta.threads.messages.create.assert_awaited_once_with(
            "thread_abc", role="user", content="hello"
        )

    async def test_not_found_translated(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.threads.messages.create = AsyncMock(
            side_effect=api_error(openai.NotFoundError, 404)
        )

        with pytest.raises(ThreadNotFoundError):
            await provider.add_user_message("thread_x", "hello")

    async def test_other_errors_translated(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.threads.create = AsyncMock(
            side_effect=api_error(openai.InternalServerError, 500)
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.create_thread()

        assert not isinstance(exc_info.value, ThreadNotFoundError)


class TestStreamRun:
    """Tests for run streaming."""

    async def test_yields_name_and_payload(self, provider: AssistantProvider, client: MagicMock) -> None:
        stream = FakeRunStream([
            ("thread.run.created", {"id": "run_1"}),
            ("thread.message.delta", {"delta": {"content": []}}),
        ])
        client.beta.threads.runs.stream = MagicMock(return_value=stream)

        events = [event async for event in provider.stream_run("thread_abc")]

        assert events == [
            ("thread.run.created", {"id": "run_1"}),
            ("thread.message.delta", {"delta": {"content": []}}),
        ]
        assert stream.closed
        client.beta.threads.runs.stream.assert_called_once_with(
            thread_id="thread_abc", assistant_id="asst_123"
        )

    async def test_missing_api_key_fails_on_first_call(self) -> None:
        """Construction never reads the environment; the first call reports it."""
        with patch.dict("os.environ", {}, clear=True):
            provider = AssistantProvider()

            with pytest.raises(ProviderError, match="OPENAI_API_KEY"):
                await provider.create_thread()

        await provider.close()

    async def test_missing_assistant_fails(self, client: MagicMock) -> None:
        provider = AssistantProvider(AssistantConfig(api_key="sk", assistant_id=None), client=client)

        with pytest.raises(ProviderError, match="OPENAI_ASSISTANT_ID"):
            _ = [event async for event in provider.stream_run("thread_abc")]


class TestListMessages:
    """Tests for message listing."""

    async def test_lists_all_pages_ascending(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.threads.messages.list = MagicMock(
            return_value=FakePage([model({"id": "m1"}), model({"id": "m2"})])
        )

        messages = await provider.list_messages("thread_abc")

        assert messages == [{"id": "m1"}, {"id": "m2"}]
        client.beta.threads.messages.list.assert_called_once_with("thread_abc", order="asc")

    async def test_unknown_thread(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.threads.messages.list = MagicMock(
            return_value=FakePage([], error=api_error(openai.NotFoundError, 404))
        )

        with pytest.raises(ThreadNotFoundError):
            await provider.list_messages("thread_x")


class TestAssistantAdmin:
    """Tests for assistant create/update and the CLI wiring."""

    async def test_create_assistant_defaults(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.assistants.create = AsyncMock(return_value=MagicMock(id="asst_new"))

        assert await provider.create_assistant() == "asst_new"

        client.beta.assistants.create.assert_awaited_once_with(
            name="Helpful Assistant",
            instructions="You are helpful assistant that can help with tasks and questions.",
            model="gpt-4o-mini",
            tools=[{"type": "code_interpreter"}],
        )

    async def test_update_configured_assistant(self, provider: AssistantProvider, client: MagicMock) -> None:
        client.beta.assistants.update = AsyncMock(return_value=MagicMock(id="asst_123"))

        await provider.update_assistant(instructions="Be brief.")

        client.beta.assistants.update.assert_awaited_once_with(
            "asst_123",
            model="gpt-4o-mini",
            tools=[{"type": "file_search"}],
            instructions="Be brief.",
        )

    async def test_cli_create(self) -> None:
        args = build_parser().parse_args(["create", "--name", "Tutor"])
        provider = MagicMock()
        provider.create_assistant = AsyncMock(return_value="asst_9")

        assert await run_command(args, provider) == "asst_9"
        provider.create_assistant.assert_awaited_once_with(
            name="Tutor",
            instructions="You are helpful assistant that can help with tasks and questions.",
            model="gpt-4o-mini",
        )

    async def test_cli_update(self) -> None:
        args = build_parser().parse_args(["update", "--assistant-id", "asst_1", "--model", "gpt-4o"])
        provider = MagicMock()
        provider.update_assistant = AsyncMock(return_value="asst_1")

        await run_command(args, provider)

        provider.update_assistant.assert_awaited_once_with(
            assistant_id="asst_1", name=None, instructions=None, model="gpt-4o"
        )
