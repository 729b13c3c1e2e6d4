"""Assistant configuration with environment variable loading.

Pydantic-based configuration for the OpenAI Assistants API relay.
Supports OpenAI and OpenAI-compatible APIs via custom base URL.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()


class AssistantConfig(BaseModel):
    """Configuration for the assistant provider.

    Attributes:
        api_key: API key for the provider.
        assistant_id: Identifier of the assistant that answers every run.
            Runs fail in-band when it is not set.
        base_url: API base URL (None for OpenAI default).
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", "")),
        description="API key for LLM provider",
    )
    assistant_id: str | None = Field(
        default_factory=lambda: os.getenv("OPENAI_ASSISTANT_ID") or None,
        description="Assistant used for every run (only optional for admin commands)",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        description="API base URL (None for OpenAI default)",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )
        return v.strip()

    @field_validator("assistant_id")
    @classmethod
    def strip_assistant_id(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


def get_assistant_config() -> AssistantConfig:
    """Create assistant configuration from environment.

    Raises:
        ValidationError: If the API key is missing.
    """
    return AssistantConfig()
