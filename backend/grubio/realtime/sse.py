"""Server-Sent Events bridge for live queries."""
import asyncio
import json
import logging
from typing import AsyncGenerator, Optional

from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool

from grubio.config import settings
from grubio.errors import GrubioError
from grubio.realtime.live_query import Guard, LiveQueryHub, Query

logger = logging.getLogger(__name__)


def format_sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(jsonable_encoder(data))}\n\n"


async def stream_live_query(
    hub: LiveQueryHub,
    topic: str,
    query: Query,
    guard: Optional[Guard] = None,
    heartbeat_seconds: Optional[float] = None,
) -> AsyncGenerator[str, None]:
    """Yield one ``snapshot`` event per delivery, ``: ping`` comments while idle.

    A failed query ends the stream with an ``error`` event. The subscription
    is cancelled whenever the generator is closed (client disconnect).
    """
    interval = heartbeat_seconds if heartbeat_seconds is not None else settings.SSE_HEARTBEAT_SECONDS
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _push(snapshot) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, ("snapshot", snapshot))

    def _fail(exc: GrubioError) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, ("error", exc))

    # The first snapshot queries the database; keep it off the event loop.
    subscription = await run_in_threadpool(hub.subscribe, topic, query, _push, on_error=_fail, guard=guard)
    try:
        while True:
            try:
                kind, payload = await asyncio.wait_for(queue.get(), timeout=interval)
            except asyncio.TimeoutError:
                yield ": ping\n\n"
                continue
            if kind == "error":
                yield format_sse("error", {"code": payload.code, "detail": payload.message})
                break
            yield format_sse("snapshot", payload)
    finally:
        subscription.cancel()
        logger.debug("SSE stream on '%s' closed", topic)
