"""Process entry point for the relay API and the chat UI.

RUN_MODE=integrated (default) serves both from one uvicorn process, with
NiceGUI mounted on the FastAPI app. RUN_MODE=separate starts the API on
API_PORT and the standalone UI on UI_PORT as child processes.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

STORAGE_SECRET = os.getenv("NICEGUI_STORAGE_SECRET", "assistant-chat-secret")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # httpx logs every request at INFO, one line per streamed turn.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def run_integrated() -> None:
    import uvicorn
    from nicegui import ui

    from src.api.app import create_app
    from src.ui.chat_page import chat_page  # noqa: F401 - registers "/"

    app = create_app()
    # storage_secret enables app.storage.user, where the session list lives.
    ui.run_with(app, title="Assistant Chat", storage_secret=STORAGE_SECRET)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Serving relay and chat UI on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=os.getenv("LOG_LEVEL", "info").lower())


def run_separate() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    api_port = os.getenv("API_PORT", "8000")
    env = {**os.environ, "API_BASE_URL": os.getenv("API_BASE_URL", f"http://localhost:{api_port}")}

    logger.info(f"Starting relay API on port {api_port} and chat UI on port 8080")
    procs = [
        subprocess.Popen(
            [sys.executable, "-m", "uvicorn", "src.api.app:app", "--host", host, "--port", api_port],
            env=env,
        ),
        subprocess.Popen([sys.executable, "-m", "src.ui.chat_page"], env=env),
    ]

    try:
        while all(proc.poll() is None for proc in procs):
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        for proc in procs:
            proc.terminate()
            proc.wait()


def main() -> None:
    configure_logging()
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting assistant chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
