"""Store Events — change notifications and their wire shape.

Invariants:
    - Wire shape is always {"type", "data", "timestamp"} with an ISO-8601 timestamp
    - connected carries no combination data
    - Builders are pure: the caller supplies the timestamp source

Design Decisions:
    - One builder per event kind: payload shape lives next to its name
    - sse_line() here, not in the route: tests assert exact SSE framing
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from craftsync.core.combination_record import CombinationRecord
from craftsync.core.domain_types import EventType


@dataclass(frozen=True)
class StoreEvent:
    """A change notification for subscribers."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    def to_wire(self) -> dict:
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


def connected_event() -> StoreEvent:
    return StoreEvent(
        EventType.CONNECTED,
        {"message": "Connected to CraftSync combination stream"},
    )


def _combination_payload(key: str, record: CombinationRecord) -> dict:
    return {
        "key": key,
        "first": record.first,
        "second": record.second,
        "sessionId": record.session_id,
        "combination": record.to_dict(),
        "isFirstDiscovery": record.was_first_discovery,
    }


def combination_added_event(key: str, record: CombinationRecord) -> StoreEvent:
    return StoreEvent(
        EventType.COMBINATION_ADDED, _combination_payload(key, record),
    )


def first_discovery_event(key: str, record: CombinationRecord) -> StoreEvent:
    return StoreEvent(
        EventType.FIRST_DISCOVERY, _combination_payload(key, record),
    )


def combination_deleted_event(key: str) -> StoreEvent:
    return StoreEvent(EventType.COMBINATION_DELETED, {"key": key})


def store_reset_event(removed: int) -> StoreEvent:
    return StoreEvent(EventType.STORE_RESET, {"removed": removed})


def shutdown_event() -> StoreEvent:
    return StoreEvent(
        EventType.SHUTDOWN, {"message": "Server is shutting down"},
    )
