"""Test package for the assistant chat relay.

Structure:
    - unit/: Relay, provider, history, SSE decoding, session store and
      controller tests against in-memory fakes
    - integration/: The FastAPI app over ASGITransport, driven by raw HTTP
      and by the real client stack

No test reaches the network. Leverages pytest with pytest-check for soft
assertions.
"""
