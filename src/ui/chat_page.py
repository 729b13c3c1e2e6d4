"""NiceGUI chat interface: session sidebar plus streaming conversation."""

import os
from datetime import datetime

from nicegui import app, ui

from src.client.api import close_api_client, get_api_client
from src.client.controller import ChatController
from src.client.session_store import SessionStore
from src.models.schemas import Message

STARTER_PROMPTS = [
    ("psychology", "Explain quantum computing in simple terms"),
    ("brush", "What are the pros and cons of Tailwind CSS?"),
    ("restaurant", "Suggest a recipe for a healthy dinner"),
    ("edit_note", "Write a short poem about React"),
]

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; }
    .sidebar { background: #111827; color: #e5e7eb; }
    .session-item { border-radius: 8px; cursor: pointer; }
    .session-item:hover { background: #1f2937; }
    .session-active { background: #374151; }
    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }
    .streaming-cursor::after { content: "▍"; animation: blink 1s step-start infinite; }
    @keyframes blink { 50% { opacity: 0; } }
</style>
"""


def format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp / 1000).strftime("%b %d, %I:%M %p")


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    sessions = SessionStore(app.storage.user)
    sessions.load()
    controller = ChatController(get_api_client(), sessions)

    input_field: ui.input

    def render_message(msg: Message) -> None:
        is_user = msg.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        with ui.row().classes(f"w-full {align}"):
            with ui.element("div").classes(f"max-w-[75%] px-4 py-3 {bubble}"):
                if is_user:
                    ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                else:
                    cursor = " streaming-cursor" if msg.is_streaming else ""
                    ui.markdown(msg.content).classes(f"text-sm{cursor}")

    @ui.refreshable
    def sidebar() -> None:
        ui.button("New chat", icon="add", on_click=start_new_chat).props(
            "flat color=white align=left"
        ).classes("w-full")
        ui.separator().classes("bg-gray-700")
        with ui.column().classes("w-full gap-1 flex-grow overflow-y-auto"):
            if not sessions.sessions:
                ui.label("No conversations yet").classes("text-xs text-gray-500 px-2")
            for session in sessions.sessions:
                active = " session-active" if session.thread_id == controller.active_thread_id else ""
                with (
                    ui.row()
                    .classes(f"w-full items-center px-2 py-1 session-item{active}")
                    .on("click", lambda s=session: select_chat(s.thread_id))
                ):
                    with ui.column().classes("gap-0 flex-grow"):
                        ui.label(session.title).classes("text-sm truncate")
                        ui.label(format_timestamp(session.timestamp)).classes(
                            "text-[10px] text-gray-500"
                        )
                    # .stop keeps the click from also selecting the row.
                    ui.button(icon="close").props("flat round dense size=sm color=grey").on(
                        "click.stop", lambda s=session: controller.delete_session(s.thread_id)
                    )
        if sessions.sessions:
            ui.button("Delete all", icon="delete", on_click=confirm_delete_all).props(
                "flat color=red-4 align=left"
            ).classes("w-full")

    @ui.refreshable
    def conversation() -> None:
        if not controller.messages and not controller.is_busy:
            with ui.column().classes("w-full items-center justify-center gap-6 py-16"):
                ui.label("How can I help you today?").classes("text-2xl font-semibold")
                with ui.grid(columns=2).classes("gap-4 w-full max-w-xl"):
                    for icon, text in STARTER_PROMPTS:
                        ui.button(text, icon=icon, on_click=lambda t=text: send(t)).props(
                            "outline no-caps align=left"
                        ).classes("h-auto p-4")
            return

        for msg in controller.messages:
            render_message(msg)

    @ui.refreshable
    def status_bar() -> None:
        if controller.loading_history:
            ui.label("Loading conversation...").classes("text-xs italic text-gray-500")
        elif controller.is_busy and controller.messages and not controller.messages[-1].content:
            ui.label("Assistant is connecting...").classes("text-xs italic text-gray-500")
        if controller.error:
            with ui.row().classes("items-center gap-2"):
                ui.label(controller.error).classes("text-xs font-medium text-red-500")
                if controller.history_failed:
                    ui.button("Retry", on_click=controller.reload_history).props("flat dense")

    def refresh() -> None:
        sidebar.refresh()
        conversation.refresh()
        status_bar.refresh()
        input_field.set_enabled(not controller.is_busy)

    controller.on_change = refresh

    def send(text: str | None = None) -> None:
        text = text if text is not None else input_field.value
        if controller.send(text):
            input_field.value = ""

    def start_new_chat() -> None:
        controller.new_chat()
        input_field.value = ""

    async def select_chat(thread_id: str) -> None:
        input_field.value = ""
        await controller.open_session(thread_id)

    def delete_all() -> None:
        delete_dialog.close()
        controller.delete_all()
        input_field.value = ""

    with ui.dialog() as delete_dialog, ui.card():
        ui.label("Are you sure you want to delete all chat history? This cannot be undone.")
        with ui.row().classes("w-full justify-end"):
            ui.button("Cancel", on_click=delete_dialog.close).props("flat")
            ui.button("Delete", on_click=delete_all).props("color=red")

    def confirm_delete_all() -> None:
        delete_dialog.open()

    # === UI Layout ===
    with ui.row().classes("w-full h-screen gap-0 no-wrap"):
        with ui.column().classes("sidebar w-64 h-full p-3 gap-2"):
            sidebar()

        with ui.column().classes("flex-grow h-full gap-0"):
            with (
                ui.scroll_area().classes("flex-grow w-full"),
                ui.column().classes("w-full max-w-4xl mx-auto p-5 gap-4"),
            ):
                conversation()

            with ui.column().classes("w-full max-w-3xl mx-auto px-4 pb-4 gap-1"):
                status_bar()
                with ui.row().classes("w-full items-center gap-2 bg-white rounded-lg shadow p-2"):
                    input_field = (
                        ui.input(placeholder="Ask anything...")
                        .props("borderless dense")
                        .classes("flex-grow px-2")
                        .on("keydown.enter", lambda: send())
                    )
                    ui.button(icon="send", on_click=lambda: send()).props("round unelevated")

    ui.context.client.on_disconnect(controller.close)


app.on_shutdown(close_api_client)


def main() -> None:
    ui.run(
        title="Assistant Chat",
        port=8080,
        reload=False,
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "assistant-chat-secret"),
    )


if __name__ == "__main__":
    main()
