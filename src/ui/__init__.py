"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Session sidebar with new chat, select, delete and delete-all
    - Message list that renders the streaming reply as it grows
    - Loading, error and retry indicators

Contains no stream logic. Renders the state of a ChatController.
"""
