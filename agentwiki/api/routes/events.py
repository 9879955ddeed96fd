"""
Live Event Stream

Server-Sent Events feed of everything published on the message bus
while the client stays connected.
"""

import json
from collections.abc import AsyncIterator

import structlog
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from agentwiki.api.dependencies import WikiAppDep
from agentwiki.kernel.message_bus import MessageBus

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["events"])


async def event_stream(bus: MessageBus, ping_interval: float) -> AsyncIterator[str]:
    """
    Yield SSE frames until the client disconnects.

    Emits a comment line every ``ping_interval`` seconds without traffic so
    proxies keep the connection open.
    """
    async with bus.connect() as subscription:
        yield f"data: {json.dumps({'type': 'connected'})}\n\n"
        while True:
            event = await subscription.get(timeout=ping_interval)
            if event is None:
                yield ": ping\n\n"
                continue
            yield f"data: {json.dumps(event.to_payload())}\n\n"


@router.get("/events")
async def stream_events(wiki_app: WikiAppDep) -> StreamingResponse:
    """Stream wiki events via Server-Sent Events."""
    return StreamingResponse(
        event_stream(wiki_app.bus, wiki_app.settings.sse_ping_interval_seconds),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
