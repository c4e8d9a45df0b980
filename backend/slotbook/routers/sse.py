# backend/slotbook/routers/sse.py
"""
Server-Sent Events bridge for live read-models.

Read-model callbacks fire on whatever thread published the change (a Redis
listener thread, or a request thread with the in-process feed), so payloads
are handed to the event loop with call_soon_threadsafe and drained by the
streaming generator. The subscription is released when the client goes away.
"""

import asyncio
import json
import logging
from typing import Any, Callable

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from ..services.feed import Unsubscribe

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0

Subscriber = Callable[[Callable[[Any], None]], Unsubscribe]


def format_event(payload: Any) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"


async def sse_response(request: Request, subscribe: Subscriber) -> StreamingResponse:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def push(payload: Any) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, payload)

    # subscribe() delivers the initial projection synchronously, off the loop
    unsubscribe = await run_in_threadpool(subscribe, push)

    async def stream():
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield format_event(payload)
        finally:
            unsubscribe()
            logger.debug(f"SSE stream closed: {request.url.path}")

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
