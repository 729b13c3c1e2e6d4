"""Integration tests for the history endpoint and the full client loop.

The client side uses the real ChatApiClient and ChatController against
the app over ASGITransport, with only the provider replaced.
"""

import pytest
import pytest_check as check
from httpx import AsyncClient

from src.client.api import ChatApiClient, HistoryFetchError, TransportError
from src.client.controller import ChatController, StreamState
from src.client.session_store import SessionStore
from tests.fakes import FakeProvider


class TestHistoryEndpoint:
    """Integration tests for GET /chat/history/{thread_id}."""

    async def test_returns_history_in_order(
        self, async_client: AsyncClient, fake_provider: FakeProvider
    ) -> None:
        async with async_client.stream("GET", "/chat/streaming", params={"message": "hello"}) as response:
            await response.aread()

        response = await async_client.get("/chat/history/thread_1")

        check.equal(response.status_code, 200)
        check.equal(
            response.json(),
            {
                "history": [
                    {"role": "user", "content": "hello"},
                    {"role": "assistant", "content": "Hi there"},
                ]
            },
        )

    async def test_unknown_thread_returns_404(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/chat/history/thread_missing")

        check.equal(response.status_code, 404)
        check.equal(response.json(), {"error": "Chat history not found for the given ID."})

    async def test_provider_failure_returns_500(
        self, async_client: AsyncClient, fake_provider: FakeProvider
    ) -> None:
        fake_provider.threads["thread_1"] = []
        fake_provider.fail_on = "history"

        response = await async_client.get("/chat/history/thread_1")

        check.equal(response.status_code, 500)
        check.equal(response.json(), {"error": "Internal server error fetching chat history."})


class TestApiClient:
    """Tests for ChatApiClient against the app."""

    async def test_fetch_history_unknown_thread(self, api_client: ChatApiClient) -> None:
        with pytest.raises(HistoryFetchError, match="Chat history not found for the given ID."):
            await api_client.fetch_history("thread_missing")

    async def test_open_stream_rejected_request(self, api_client: ChatApiClient) -> None:
        """A 400 from the relay surfaces as a transport error."""
        with pytest.raises(TransportError, match="HTTP 400"):
            _ = [event async for event in api_client.open_stream("  ")]


class TestClientRoundTrip:
    """End-to-end: stream a reply, then reload it from history."""

    async def test_streamed_reply_matches_history(
        self, api_client: ChatApiClient, fake_provider: FakeProvider, storage: dict
    ) -> None:
        fake_provider.reply = ["Hi", " there", "!"]
        sessions = SessionStore(storage)
        controller = ChatController(api_client, sessions)

        controller.send("hello")
        await controller.wait()

        streamed = controller.messages[-1].content
        check.equal(streamed, "Hi there!")
        check.equal(controller.state, StreamState.SETTLED)
        check.equal([s.thread_id for s in sessions.sessions], ["thread_1"])

        controller.new_chat()
        await controller.switch_session("thread_1")

        check.equal(
            [(m.role, m.content) for m in controller.messages],
            [("user", "hello"), ("assistant", streamed)],
        )
        check.is_true(all(not m.is_streaming for m in controller.messages))

    async def test_second_turn_reuses_thread(
        self, api_client: ChatApiClient, fake_provider: FakeProvider, storage: dict
    ) -> None:
        sessions = SessionStore(storage)
        controller = ChatController(api_client, sessions)

        controller.send("one")
        await controller.wait()
        controller.send("two")
        await controller.wait()

        check.equal(fake_provider.created_threads, 1)
        check.equal(len(sessions), 1)
        check.equal(len(controller.messages), 4)

    async def test_upstream_error_rolls_back(
        self, api_client: ChatApiClient, fake_provider: FakeProvider, storage: dict
    ) -> None:
        fake_provider.fail_on = "run"
        controller = ChatController(api_client, SessionStore(storage))

        controller.send("hello")
        await controller.wait()

        check.equal([(m.role, m.content) for m in controller.messages], [("user", "hello")])
        check.is_in("connection reset", controller.error)
        check.is_false(controller.is_busy)
