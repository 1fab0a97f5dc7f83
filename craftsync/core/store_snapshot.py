"""Store Snapshot — serialization / deserialization of the combination map.

Invariants:
    - records_to_snapshot produces a JSON-safe dict keyed by encoded store key
    - snapshot_to_records never raises on a malformed entry; it skips and logs it
    - Decoded keys are unique in both forms: composite and encoded string
    - Legacy records are migrated: missing sessionId → default session,
      timestamp → discoveredAt, firstDiscovery → wasFirstDiscovery
    - The migrated count tells the caller whether a one-time re-save is due

Design Decisions:
    - Extracted from the store so snapshot handling is testable without IO
    - Legacy field names accepted on read only; writes always use the current shape
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone

from craftsync.core.combination_record import CombinationRecord
from craftsync.core.domain_types import DEFAULT_SESSION
from craftsync.core.pair_key import StoreKey, normalize_session_id

logger = logging.getLogger(__name__)


def records_to_snapshot(
    records: Mapping[StoreKey, CombinationRecord],
) -> dict[str, dict]:
    """Serialize the store map. Pure, no IO."""
    return {key.encode(): record.to_dict() for key, record in records.items()}


def _parse_timestamp(value: object, fallback: datetime) -> datetime:
    if not isinstance(value, str) or not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_from_snapshot(
    raw_key: str, data: Mapping, now: datetime,
) -> tuple[StoreKey, CombinationRecord, bool]:
    """Decode one persisted entry. Returns (key, record, migrated).

    Raises ValueError when the entry lacks a usable result or emoji.
    """
    result = data.get("result")
    emoji = data.get("emoji")
    if not isinstance(result, str) or not result.strip():
        raise ValueError("missing result")
    if not isinstance(emoji, str) or not emoji.strip():
        raise ValueError("missing emoji")

    migrated = False
    raw_session = data.get("sessionId")
    if raw_session is None:
        migrated = True
    session_id = normalize_session_id(raw_session)

    key = StoreKey.decode(
        raw_key, session_id, data.get("first"), data.get("second"),
    )

    if "discoveredAt" in data:
        discovered_at = _parse_timestamp(data["discoveredAt"], now)
    else:
        migrated = True
        discovered_at = _parse_timestamp(data.get("timestamp"), now)

    if "wasFirstDiscovery" in data:
        was_first = bool(data["wasFirstDiscovery"])
    else:
        migrated = True
        was_first = bool(data.get("firstDiscovery", False))

    record = CombinationRecord(
        first=key.pair.first,
        second=key.pair.second,
        result=result,
        emoji=emoji,
        session_id=session_id,
        was_first_discovery=was_first,
        discovered_at=discovered_at,
        generated=bool(data.get("generated", False)),
    )
    return key, record, migrated


def snapshot_to_records(
    snapshot: Mapping[str, object], now: datetime | None = None,
) -> tuple[dict[StoreKey, CombinationRecord], int]:
    """Decode a full snapshot. Returns (records, migrated_count)."""
    now = now or datetime.now(timezone.utc)
    records: dict[StoreKey, CombinationRecord] = {}
    if not isinstance(snapshot, Mapping):
        logger.warning("Ignoring non-object snapshot (%s)", type(snapshot).__name__)
        return records, 0
    migrated_count = 0
    encoded_seen: set[str] = set()
    for raw_key, data in snapshot.items():
        if not isinstance(data, Mapping):
            logger.warning("Skipping non-object snapshot entry: %s", raw_key)
            continue
        try:
            key, record, migrated = record_from_snapshot(raw_key, data, now)
        except ValueError as e:
            logger.warning("Skipping snapshot entry %s: %s", raw_key, e)
            continue
        encoded = key.encode()
        if encoded in encoded_seen:
            logger.warning("Duplicate snapshot entry for %s, keeping first", raw_key)
            continue
        records[key] = record
        encoded_seen.add(encoded)
        if migrated:
            migrated_count += 1
    if migrated_count:
        logger.info(
            "Migrated %d legacy combination record(s) to session '%s' format",
            migrated_count, DEFAULT_SESSION,
        )
    return records, migrated_count
