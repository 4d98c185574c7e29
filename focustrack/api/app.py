from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..clock import Clock, RealClock, Scheduler
from ..db import SessionStore, default_db_path
from ..recorder import SessionRecorder
from ..timer import TimerSettings
from .routes.meta import router as meta_router
from .routes.sessions import router as sessions_router
from .routes.stats import router as stats_router
from .routes.timer import router as timer_router
from .timer_service import TimerService


logger = logging.getLogger(__name__)


def create_app(
    db_path: Path | None = None,
    frontend_dist: Path | None = None,
    dev_url: str | None = None,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
    settings: TimerSettings | None = None,
    notify: bool = False,
) -> FastAPI:
    resolved_db = Path(db_path or default_db_path())
    resolved_clock = clock or RealClock()
    store = SessionStore(resolved_db, clock=resolved_clock)
    recorder = SessionRecorder(store)
    if not recorder.init():
        logger.warning("starting with an unavailable session store at %s", resolved_db)
    timer = TimerService(recorder, scheduler=scheduler, settings=settings, notify=notify)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            timer.close()
            store.close()

    app = FastAPI(title="FocusTrack API", version=__version__, lifespan=lifespan)
    app.state.db_path = str(resolved_db)
    app.state.clock = resolved_clock
    app.state.store = store
    app.state.recorder = recorder
    app.state.timer = timer

    app.include_router(meta_router)
    app.include_router(sessions_router)
    app.include_router(stats_router)
    app.include_router(timer_router)

    if dev_url:
        app.add_api_route("/", lambda: HTMLResponse(_dev_html(dev_url)), methods=["GET"])
    elif frontend_dist and (frontend_dist / "index.html").exists():
        app.mount("/", StaticFiles(directory=str(frontend_dist), html=True), name="frontend")
    else:
        app.add_api_route("/", lambda: HTMLResponse(_missing_frontend_html()), methods=["GET"])

    return app


def create_default_app() -> FastAPI:
    frontend_dist = Path(__file__).resolve().parents[1] / "frontend" / "dist"
    dev_url = os.environ.get("FOCUSTRACK_DEV_URL", "").strip() or None
    return create_app(db_path=default_db_path(), frontend_dist=frontend_dist, dev_url=dev_url)


def _missing_frontend_html() -> str:
    return """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>FocusTrack</title>
  </head>
  <body>
    <h1>FocusTrack frontend not built</h1>
    <p>The API is available under <code>/api/v1</code>; see <code>/docs</code>.</p>
    <p>Place a built frontend in <code>focustrack/frontend/dist</code> or set
    <code>FOCUSTRACK_DEV_URL</code> to a frontend dev server.</p>
  </body>
</html>
"""


def _dev_html(dev_url: str) -> str:
    return f"""
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta http-equiv="refresh" content="0; url={dev_url}" />
    <title>FocusTrack</title>
  </head>
  <body>
    Redirecting to frontend dev server: {dev_url}
  </body>
</html>
"""
