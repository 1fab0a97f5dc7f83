"""Pair Key — canonical, order-independent identifiers for item pairs.

Invariants:
    - make_key(a, b) == make_key(b, a) for all a, b
    - No trimming: callers decide whether whitespace is significant
    - StoreKey equality is on (session_id, first, second), never on the joined string
    - Encoded form: bare pair key for the default session, "<session>:<pair>" otherwise

Design Decisions:
    - Composite key in memory, string only at the persistence/wire boundary:
      item names containing "+" cannot collide inside the store
    - Default session keeps the unprefixed form so pre-session data files load unchanged
"""

from dataclasses import dataclass

from craftsync.core.domain_types import DEFAULT_SESSION, SessionId

PAIR_SEPARATOR = "+"
SESSION_SEPARATOR = ":"


def make_key(first: str, second: str) -> str:
    """Sorted pair joined with '+'. Pure, no side effects."""
    low, high = sorted((first, second))
    return f"{low}{PAIR_SEPARATOR}{high}"


def normalize_session_id(session_id: str | None) -> SessionId:
    """None or blank session ids collapse to the default session."""
    if session_id is None or not session_id.strip():
        return DEFAULT_SESSION
    return SessionId(session_id)


@dataclass(frozen=True, order=True)
class PairKey:
    """Unordered item pair stored in sorted order."""
    first: str
    second: str

    @classmethod
    def of(cls, a: str, b: str) -> "PairKey":
        low, high = sorted((a, b))
        return cls(low, high)

    @classmethod
    def parse(cls, raw: str) -> "PairKey":
        """Best-effort split of a legacy joined key (first '+' wins)."""
        first, _, second = raw.partition(PAIR_SEPARATOR)
        return cls.of(first, second)

    def __str__(self) -> str:
        return f"{self.first}{PAIR_SEPARATOR}{self.second}"


@dataclass(frozen=True, order=True)
class StoreKey:
    """Session-qualified pair key — the store's map key."""
    session_id: str
    pair: PairKey

    @classmethod
    def of(cls, first: str, second: str, session_id: str | None = None) -> "StoreKey":
        return cls(normalize_session_id(session_id), PairKey.of(first, second))

    def encode(self) -> str:
        if self.session_id == DEFAULT_SESSION:
            return str(self.pair)
        return f"{self.session_id}{SESSION_SEPARATOR}{self.pair}"

    @classmethod
    def decode(
        cls, raw: str, session_id: str | None = None,
        first: str | None = None, second: str | None = None,
    ) -> "StoreKey":
        """Rebuild from a persisted key and the record's own fields.

        The record's sessionId tells us whether the key carries a prefix;
        legacy keys with no matching prefix map to the default slot.
        """
        sid = normalize_session_id(session_id)
        prefix = f"{sid}{SESSION_SEPARATOR}"
        if sid != DEFAULT_SESSION and raw.startswith(prefix):
            slot, pair_raw = sid, raw[len(prefix):]
        else:
            slot, pair_raw = DEFAULT_SESSION, raw
        if first is not None and second is not None:
            pair = PairKey.of(first, second)
        else:
            pair = PairKey.parse(pair_raw)
        return cls(slot, pair)
