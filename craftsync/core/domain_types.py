"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - SessionId wraps str — "default" is the session for callers that never pass one
    - All event kinds encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (SSE payloads are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SessionId = NewType("SessionId", str)

DEFAULT_SESSION = SessionId("default")


# ─── Enums ───────────────────────────────────────────────────────

class EventType(str, Enum):
    """Change events delivered to subscribers."""
    CONNECTED = "connected"
    COMBINATION_ADDED = "combination_added"
    FIRST_DISCOVERY = "first_discovery"
    COMBINATION_DELETED = "combination_deleted"
    STORE_RESET = "store_reset"
    SHUTDOWN = "shutdown"


class PersistenceBackend(str, Enum):
    """Durable storage behind the persistence gateway."""
    JSON = "json"
    SQL = "sql"
