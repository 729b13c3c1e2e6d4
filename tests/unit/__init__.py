"""Unit tests for individual components in isolation.

Coverage:
    - assistant/: Relay event sequencing, provider error translation,
      history formatting and the admin CLI
    - client/: SSE decoding, session persistence and the stream controller

Uses fakes and mocks for the provider SDK and the HTTP channel.
"""
