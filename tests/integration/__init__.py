"""Integration tests for components working together as a system.

Only the assistant provider is replaced; routing, SSE framing, the HTTP
client, the controller and the session store are the real ones.

Coverage:
    - GET /chat/streaming wire protocol and request validation
    - GET /chat/history/{thread_id} status codes and body shape
    - Full chat workflow from send to history reload
"""
