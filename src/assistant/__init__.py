"""Assistant provider integration for the chat relay.

Responsibilities:
    - Thread creation, message submission and run streaming against the
      OpenAI Assistants API
    - Relaying a run as a push channel of named events
    - Loading and normalizing the stored history of a thread
    - Assistant administration (create / update)

Maintains clean separation from the HTTP layer.
"""

from src.assistant.config import AssistantConfig, get_assistant_config
from src.assistant.history import format_history, load_history
from src.assistant.provider import (
    AssistantProvider,
    ProviderError,
    ThreadNotFoundError,
    get_assistant_provider,
)
from src.assistant.relay import StreamRelay

__all__ = [
    "AssistantConfig",
    "AssistantProvider",
    "ProviderError",
    "StreamRelay",
    "ThreadNotFoundError",
    "format_history",
    "get_assistant_config",
    "get_assistant_provider",
    "load_history",
]
