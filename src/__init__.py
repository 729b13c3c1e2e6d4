"""Assistant Chat - streaming multi-turn conversations with an OpenAI assistant.

Combines FastAPI for the SSE relay, the OpenAI Assistants API for threads
and runs, NiceGUI for the chat interface, and Pydantic for data validation.

Components:
    - api: HTTP endpoints and streaming responses
    - assistant: Provider adapter, stream relay and history loading
    - client: Push-channel consumer, session store and HTTP client
    - ui: Web interface for chat interactions
    - models: Event, session and message schemas
"""

__version__ = "0.1.0"
