"""Combination Record — immutable value bound to a store key.

Invariants:
    - Frozen after construction: was_first_discovery and discovered_at never change
    - discovered_at is timezone-aware UTC
    - to_dict() is JSON-safe and uses the camelCase wire/persisted field names

Design Decisions:
    - Frozen dataclass over Pydantic model: core stays free of framework types
    - first/second carried on the record so a key never has to be re-split on load
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from craftsync.core.domain_types import DEFAULT_SESSION


@dataclass(frozen=True)
class CombinationRecord:
    """Outcome of combining two items."""

    first: str
    second: str
    result: str
    emoji: str
    session_id: str = DEFAULT_SESSION
    was_first_discovery: bool = False
    discovered_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    # Produced by the AI generator rather than entered by a caller
    generated: bool = False

    def to_dict(self) -> dict:
        return {
            "first": self.first,
            "second": self.second,
            "result": self.result,
            "emoji": self.emoji,
            "sessionId": self.session_id,
            "wasFirstDiscovery": self.was_first_discovery,
            "discoveredAt": self.discovered_at.isoformat(),
            "generated": self.generated,
        }
