"""Recent backend logs for the admin dashboard, plus a live SSE feed."""

import asyncio
import json
import logging
import threading
from collections import deque
from datetime import datetime
from typing import Optional

from fastapi import APIRouter
from starlette.responses import StreamingResponse

router = APIRouter(prefix="/api/logs", tags=["logs"])

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
KEEPALIVE_SECONDS = 30


def component_of(logger_name: str) -> str:
    """``talkmate.storage.tickets`` -> ``storage``; foreign loggers keep their root."""
    parts = logger_name.split(".")
    if parts[0] == "talkmate" and len(parts) > 1:
        return parts[1]
    return parts[0]


class BufferedLogHandler(logging.Handler):
    """Keeps the last ``maxlen`` records and pushes new ones to stream subscribers.

    Records may arrive from any thread (uvicorn workers, scheduler jobs), so
    delivery to each subscriber goes through its own event loop.
    """

    def __init__(self, maxlen: int = 500):
        super().__init__()
        self._buffer: deque[dict] = deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self._subscribers: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []

    def emit(self, record: logging.LogRecord):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "component": component_of(record.name),
            "message": self.format(record),
        }
        with self._lock:
            self._buffer.append(entry)
            subscribers = list(self._subscribers)

        for loop, queue in subscribers:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, entry)
            except RuntimeError:
                # Loop already closed; the subscriber is dropped on exit
                pass

    def entries(
        self,
        level: Optional[str] = None,
        component: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        with self._lock:
            out = list(self._buffer)
        if level:
            threshold = logging.getLevelName(level.upper())
            if isinstance(threshold, int):
                out = [e for e in out if logging.getLevelName(e["level"]) >= threshold]
        if component:
            out = [e for e in out if e["component"] == component]
        if limit:
            out = out[-limit:]
        return out

    def clear(self):
        with self._lock:
            self._buffer.clear()

    def subscribe(self, loop: asyncio.AbstractEventLoop) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.append((loop, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        with self._lock:
            self._subscribers = [(l, q) for l, q in self._subscribers if q is not queue]


log_handler = BufferedLogHandler()
log_handler.setFormatter(logging.Formatter(LOG_FORMAT))


async def _sse_events(handler: BufferedLogHandler, component: Optional[str]):
    queue = handler.subscribe(asyncio.get_running_loop())
    try:
        for entry in handler.entries(component=component):
            yield f"data: {json.dumps(entry)}\n\n"

        while True:
            try:
                entry = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            if component and entry["component"] != component:
                continue
            yield f"data: {json.dumps(entry)}\n\n"
    except asyncio.CancelledError:
        pass
    finally:
        handler.unsubscribe(queue)


@router.get("")
async def recent_logs(
    level: Optional[str] = None,
    component: Optional[str] = None,
    limit: Optional[int] = None,
):
    """``component`` filters by subsystem: storage, api, scheduler, integrations, llm."""
    return {"logs": log_handler.entries(level, component, limit)}


@router.get("/stream")
async def stream_logs(component: Optional[str] = None):
    return StreamingResponse(
        _sse_events(log_handler, component),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.delete("")
async def clear_logs():
    log_handler.clear()
    return {"status": "ok"}
