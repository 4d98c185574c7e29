from __future__ import annotations

import logging
import os
import socket
import threading
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from ..db import default_db_path
from ..lifecycle import AppState


logger = logging.getLogger(__name__)


def launch_desktop(db_path: Path | None = None) -> int:
    try:
        import uvicorn
        import webview
    except ImportError as exc:
        print(f"GUI unavailable: missing dependency (fastapi/uvicorn/pywebview). {exc}")
        print('Install the GUI extra first: pip install "focustrack[gui]"')
        return 2

    app = _create_api_app(db_path=db_path)
    host = "127.0.0.1"
    port = _find_free_port()
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="warning",
        )
    )
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    if not _wait_for_api(host, port, timeout_sec=12.0):
        print("GUI unavailable: local API did not become ready in time.")
        server.should_exit = True
        return 2

    try:
        window = webview.create_window(
            "FocusTrack",
            f"http://{host}:{port}",
            min_size=(420, 720),
            text_select=True,
        )
        bind_lifecycle(window, app.state.timer)
        webview.start(debug=False)
    except Exception as exc:
        logger.exception("desktop window failed")
        print(f"GUI failed: {exc}")
        return 2
    finally:
        server.should_exit = True
        thread.join(timeout=2.0)

    return 0


def bind_lifecycle(window: Any, timer: Any) -> None:
    """Route window minimize/restore to the timer as background/foreground."""

    def on_minimized(*_: object) -> None:
        timer.notify_lifecycle(AppState.BACKGROUND)

    def on_restored(*_: object) -> None:
        timer.notify_lifecycle(AppState.FOREGROUND)

    window.events.minimized += on_minimized
    window.events.restored += on_restored


def _create_api_app(db_path: Path | None = None):
    from ..api.app import create_app

    resolved_db = Path(db_path or default_db_path())
    frontend_dist = Path(__file__).resolve().parents[1] / "frontend" / "dist"
    dev_url = os.environ.get("FOCUSTRACK_DEV_URL", "").strip() or None
    return create_app(db_path=resolved_db, frontend_dist=frontend_dist, dev_url=dev_url, notify=True)


def _find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


def _wait_for_api(host: str, port: int, timeout_sec: float) -> bool:
    deadline = time.time() + timeout_sec
    url = f"http://{host}:{port}/api/v1/health"
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(url, timeout=1.2) as resp:
                if resp.status == 200:
                    return True
        except (urllib.error.URLError, TimeoutError):
            time.sleep(0.2)
            continue
    return False
