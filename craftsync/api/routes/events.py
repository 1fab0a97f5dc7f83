"""Events & Stats — SSE change stream and aggregate counters.

Invariants:
    - Subscription happens before the response starts: nothing published after
      the request is accepted is missed
    - Disconnect (client gone, handle closed, or generator cancelled) always
      unsubscribes in the generator's finally block
    - Idle streams emit ": keepalive" comments every sse_keepalive_seconds

Design Decisions:
    - StreamingResponse over a third-party SSE lib: the frame format is one line
    - event_stream() takes is_disconnected as a callable so tests drive it without ASGI
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from craftsync.api.dependencies import get_combination_service
from craftsync.config import get_settings
from craftsync.core.store_events import sse_line
from craftsync.services.change_broadcaster import QueueSubscriber
from craftsync.services.combination_service import CombinationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["events"])

# SSE headers prevent proxy/browser buffering of streamed events
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

KEEPALIVE_LINE = ": keepalive\n\n"


async def event_stream(
    handle: QueueSubscriber,
    service: CombinationService,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames from a subscriber handle until it closes."""
    try:
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(
                    handle.get(), timeout=keepalive_seconds,
                )
            except asyncio.TimeoutError:
                yield KEEPALIVE_LINE
                continue
            if event is None:
                break
            yield sse_line(event.to_wire())
    finally:
        service.unsubscribe(handle)


@router.get("/events")
async def stream_events(
    request: Request,
    service: CombinationService = Depends(get_combination_service),
):
    handle = service.subscribe()
    return StreamingResponse(
        event_stream(
            handle, service, request.is_disconnected,
            get_settings().sse_keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/stats")
async def get_stats(
    service: CombinationService = Depends(get_combination_service),
):
    return service.stats()
