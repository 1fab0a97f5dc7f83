"""Change Broadcaster — fan-out of store events to live subscribers.

Invariants:
    - A subscriber receives only events published after it subscribed
    - subscribe() delivers a connected event before anything else
    - unsubscribe() is idempotent and ignores unknown handles
    - A failing subscriber is dropped and closed; fan-out to the rest continues
    - publish() never raises and never suspends

Design Decisions:
    - Bounded asyncio.Queue per subscriber with put_nowait: a stalled SSE client
      fills its own queue and is pruned, it can never stall the store
    - Registry iterated over a copy: handles may be pruned mid-fan-out
    - Registry accepts any Subscriber: QueueSubscriber is the shell's handle,
      tests register fakes
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator

from craftsync.core.errors import BroadcastDeliveryError
from craftsync.core.repository_protocols import Subscriber
from craftsync.core.store_events import (
    StoreEvent, connected_event, shutdown_event,
)

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class QueueSubscriber:
    """Subscriber handle backed by a bounded in-process queue."""

    def __init__(self, max_pending: int = DEFAULT_QUEUE_SIZE):
        self.subscriber_id = str(uuid.uuid4())
        self._max_pending = max_pending
        # One extra slot so close() can always enqueue the end-of-stream marker
        self._queue: asyncio.Queue[StoreEvent | None] = asyncio.Queue(
            maxsize=max_pending + 1,
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: StoreEvent) -> None:
        if self._closed:
            raise BroadcastDeliveryError(self.subscriber_id, "handle closed")
        if self._queue.qsize() >= self._max_pending:
            raise BroadcastDeliveryError(
                self.subscriber_id,
                f"queue full ({self._max_pending} pending)",
            )
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def get(self) -> StoreEvent | None:
        """Next event, or None once the handle is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    async def __aiter__(self) -> AsyncIterator[StoreEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class ChangeBroadcaster:
    """Registry of subscriber handles with isolated per-subscriber delivery."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: set[Subscriber] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> QueueSubscriber:
        """Create, register, and greet a new queue-backed subscriber."""
        handle = QueueSubscriber(self._queue_size)
        self.register(handle)
        return handle

    def register(self, handle: Subscriber) -> None:
        self._subscribers.add(handle)
        logger.info(
            "Subscriber connected (total=%d)", len(self._subscribers),
            extra={"subscriber_id": handle.subscriber_id},
        )
        self._deliver(handle, connected_event())

    def unsubscribe(self, handle: Subscriber) -> None:
        if handle not in self._subscribers:
            return
        self._subscribers.discard(handle)
        handle.close()
        logger.info(
            "Subscriber disconnected (total=%d)", len(self._subscribers),
            extra={"subscriber_id": handle.subscriber_id},
        )

    def publish(self, event: StoreEvent) -> int:
        """Deliver to every registered subscriber. Returns successful deliveries."""
        delivered = 0
        for handle in list(self._subscribers):
            if self._deliver(handle, event):
                delivered += 1
        logger.debug(
            "Published %s to %d subscriber(s)", event.type.value, delivered,
        )
        return delivered

    def shutdown(self) -> None:
        """Announce shutdown, then close and forget every handle."""
        self.publish(shutdown_event())
        for handle in list(self._subscribers):
            handle.close()
        self._subscribers.clear()

    def _deliver(self, handle: Subscriber, event: StoreEvent) -> bool:
        try:
            handle.send(event)
            return True
        except Exception as e:
            # BroadcastDeliveryError or anything a foreign handle raises
            logger.warning(
                f"Dropping subscriber after failed delivery: {e}",
                extra={
                    "subscriber_id": handle.subscriber_id,
                    "error_code": getattr(e, "code", "BROADCAST_DELIVERY_FAILED"),
                },
            )
            self._subscribers.discard(handle)
            try:
                handle.close()
            except Exception:
                logger.debug("Subscriber close failed", exc_info=True)
            return False
