"""Discovery Tracker — global first-discovery check over a store snapshot.

Invariants:
    - Case-insensitive: "Dragon" and "dragon" are the same discovery
    - Session-agnostic: a result seen under any session forecloses it everywhere
    - Pure function, O(n) over the snapshot, no caching outside the store

Design Decisions:
    - Linear rescan over a result index: store size is bounded by the game's
      item space, and recomputing from live contents is what lets a deleted
      sole holder free the result up again
"""

from collections.abc import Iterable

from craftsync.core.combination_record import CombinationRecord


def normalize_result(result: str) -> str:
    return result.casefold()


def is_first_discovery(
    result: str, records: Iterable[CombinationRecord],
) -> bool:
    """True iff no record in the snapshot produced an equal result."""
    candidate = normalize_result(result)
    return not any(
        normalize_result(r.result) == candidate for r in records
    )
