"""Chat endpoints: streaming relay and thread history.

Once the streaming response starts, headers are committed and every
outcome is an in-band SSE event. Only a missing message is rejected
with a conventional status code.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from src.assistant.history import load_history
from src.assistant.provider import AssistantProvider, ThreadNotFoundError, get_assistant_provider
from src.assistant.relay import StreamRelay
from src.models.schemas import ErrorResponse, HistoryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("/streaming", response_model=None)
async def chat_streaming(
    provider: Annotated[AssistantProvider, Depends(get_assistant_provider)],
    message: Annotated[str | None, Query()] = None,
    thread_id: Annotated[str | None, Query(alias="threadId")] = None,
) -> StreamingResponse | PlainTextResponse:
    """Relay one chat turn as a Server-Sent Events stream.

    Event order: ``thread.id`` first, then the provider's run events under
    their own names, then exactly one of ``stream.end`` or ``stream.error``.

    Args:
        message: The user's message (query parameter).
        thread_id: Thread to continue; empty or absent starts a new one.

    Raises:
        400: Message missing or blank (plain-text body, no stream opened).
    """
    if not message or not message.strip():
        return PlainTextResponse(
            "Error: Message content is required in query parameters.",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    thread_id = thread_id or None
    logger.info(f'Streaming request received: "{message}", Thread ID: {thread_id or "New"}')

    relay = StreamRelay(provider)
    return StreamingResponse(
        relay.encoded(message, thread_id),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get(
    "/history/{thread_id}",
    response_model=HistoryResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def chat_history(
    thread_id: str,
    provider: Annotated[AssistantProvider, Depends(get_assistant_provider)],
) -> HistoryResponse | JSONResponse:
    """Return the stored messages of a thread in chronological order.

    Messages without text content are left out.

    Raises:
        404: Unknown thread.
        500: Any other provider failure.
    """
    try:
        history = await load_history(provider, thread_id)
    except ThreadNotFoundError:
        logger.warning(f"History requested for unknown thread {thread_id}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Chat history not found for the given ID."},
        )
    except Exception:
        logger.exception(f"Error fetching history for thread {thread_id}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error fetching chat history."},
        )

    return HistoryResponse(history=history)
