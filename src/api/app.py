"""FastAPI application factory for the assistant relay."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.chat import router as chat_router
from src.assistant.provider import close_assistant_provider

logger = logging.getLogger(__name__)


def cors_origins() -> list[str]:
    """Origins allowed to open streams, from comma-separated CORS_ORIGINS."""
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Close the shared provider client on shutdown.

    The provider itself is created on the first request that needs it.
    """
    logger.info("Assistant relay API ready")
    try:
        yield
    finally:
        await close_assistant_provider()
        logger.info("Assistant relay API stopped")


def create_app() -> FastAPI:
    """Build the relay app: chat routes, CORS and a health probe."""
    application = FastAPI(
        title="Assistant Relay API",
        description=(
            "Relays multi-turn conversations with an OpenAI assistant as "
            "Server-Sent Events and serves the stored history of each thread."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # EventSource-style clients read the stream cross-origin.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    application.include_router(chat_router)

    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "assistant-relay"}

    return application


app = create_app()
