"""FastAPI diagnostics endpoint served while an audit runs."""

from __future__ import annotations

import sys
import threading
import traceback
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel

from ..git.sync import SyncProgress
from ..logging import get_logger


class HealthResponse(BaseModel):
    status: str


class ThreadStack(BaseModel):
    name: str
    ident: Optional[int] = None
    daemon: bool
    stack: List[str]


class ThreadsResponse(BaseModel):
    count: int
    threads: List[ThreadStack]


class SyncResponse(BaseModel):
    drivers: Dict[str, str]


def create_app(progress: SyncProgress | None = None) -> FastAPI:
    """Create the diagnostics application for the given sync progress tracker."""

    tracker = progress or SyncProgress()
    app = FastAPI(title="uastcov diagnostics", version="1.0.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/debug/threads", response_model=ThreadsResponse)
    async def threads() -> ThreadsResponse:
        return ThreadsResponse(count=threading.active_count(), threads=_thread_stacks())

    @app.get("/debug/sync", response_model=SyncResponse)
    async def sync_state() -> SyncResponse:
        return SyncResponse(drivers=tracker.snapshot())

    return app


def _thread_stacks() -> List[ThreadStack]:
    frames = sys._current_frames()
    stacks: List[ThreadStack] = []
    for thread in sorted(threading.enumerate(), key=lambda t: t.name):
        frame = frames.get(thread.ident) if thread.ident is not None else None
        stack = [line.rstrip("\n") for line in traceback.format_stack(frame)] if frame else []
        stacks.append(
            ThreadStack(name=thread.name, ident=thread.ident, daemon=thread.daemon, stack=stack)
        )
    return stacks


def start_diagnostics_server(
    progress: SyncProgress, *, host: str = "localhost", port: int = 6060
) -> Optional[threading.Thread]:
    """Serve the diagnostics app from a daemon thread; failures are only logged."""
    logger = get_logger("diagnostics")
    config = uvicorn.Config(create_app(progress), host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)

    def _serve() -> None:
        try:
            server.run()
        except (OSError, SystemExit) as exc:
            logger.error("cannot start diagnostics endpoint: %s", exc)

    logger.info("starting diagnostics endpoint on http://%s:%d", host, port)
    thread = threading.Thread(target=_serve, name="uastcov-diagnostics", daemon=True)
    thread.start()
    return thread
