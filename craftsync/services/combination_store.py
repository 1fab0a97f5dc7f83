"""Combination Store — authoritative, write-once map of pair results.

Invariants:
    - A key is inserted at most once; re-adding returns the existing record untouched
    - was_first_discovery is computed at insert time against ALL records, any session
    - Existence check, discovery scan, and insert run under one lock with no
      suspension point between them (no double insert, no double first discovery)
    - Save and broadcast happen after the mutation lock is released
    - A failed save never rolls back the in-memory mutation; it becomes a warning
    - Non-default sessions never see another session's record via fallback
    - Every record owns a distinct encoded key: two pairs that would persist
      under the same string are never both accepted

Design Decisions:
    - Single asyncio.Lock for all mutations: single-process service, store size
      bounded by item space, so per-key locks buy nothing
    - Separate save lock: saves are serialized and each writes the latest full
      snapshot, taken when the save starts
    - Persistence wrapped in wait_for: a hung gateway degrades to in-memory only
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from craftsync.core.combination_record import CombinationRecord
from craftsync.core.discovery import is_first_discovery
from craftsync.core.domain_types import DEFAULT_SESSION
from craftsync.core.errors import (
    CombinationKeyConflictError,
    CombinationValidationError,
    ErrorContext,
    PersistenceError,
)
from craftsync.core.pair_key import StoreKey, normalize_session_id
from craftsync.core.repository_protocols import CombinationRepository
from craftsync.core.store_events import (
    combination_added_event,
    combination_deleted_event,
    first_discovery_event,
    store_reset_event,
)
from craftsync.core.store_snapshot import records_to_snapshot, snapshot_to_records
from craftsync.services.change_broadcaster import ChangeBroadcaster

logger = logging.getLogger(__name__)

DEFAULT_SAVE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class AddResult:
    """Outcome of add(). is_first_discovery is transient, never stored."""
    key: str
    record: CombinationRecord
    is_new: bool
    is_first_discovery: bool
    warning: str | None = None


@dataclass(frozen=True)
class DeleteResult:
    removed: bool
    warning: str | None = None


@dataclass(frozen=True)
class StoreStats:
    total_combinations: int
    first_discoveries: int
    sessions_seen: list[str]


def _require(value: object, field: str, session_id: str | None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise CombinationValidationError(
            f"Missing required field: {field}", field,
            ErrorContext(session_id=session_id),
        )
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CombinationStore:
    """Owns the combination map; the only component allowed to mutate it."""

    def __init__(
        self,
        repository: CombinationRepository,
        broadcaster: ChangeBroadcaster,
        save_timeout_seconds: float = DEFAULT_SAVE_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._repository = repository
        self._broadcaster = broadcaster
        self._save_timeout = save_timeout_seconds
        self._clock = clock
        self._records: dict[StoreKey, CombinationRecord] = {}
        # encoded key -> owning StoreKey; mirrors _records
        self._slots: dict[str, StoreKey] = {}
        self._lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()

    # -- Loading -------------------------------------------------------------

    async def load(self) -> int:
        """Replace in-memory contents with the gateway snapshot.

        Empty or unreadable storage yields an empty store. Legacy records are
        migrated and re-saved once.
        """
        try:
            snapshot = await asyncio.wait_for(
                self._repository.load(), timeout=self._save_timeout,
            )
        except (PersistenceError, asyncio.TimeoutError) as e:
            logger.error(f"Combination load failed, starting empty: {e}")
            snapshot = {}
        except Exception as e:
            logger.error(
                f"Unexpected combination load failure, starting empty: {e}",
                exc_info=True,
            )
            snapshot = {}
        records, migrated = snapshot_to_records(snapshot, now=self._clock())
        async with self._lock:
            self._records = records
            self._slots = {k.encode(): k for k in records}
        logger.info("Loaded %d combination(s)", len(records))
        if migrated:
            warning = await self._persist()
            if warning:
                logger.warning("Re-save after migration failed: %s", warning)
        return len(records)

    # -- Reads ---------------------------------------------------------------

    def get(
        self, first: str, second: str, session_id: str | None = None,
    ) -> CombinationRecord | None:
        """Session-qualified lookup. Never mutates."""
        return self._find(StoreKey.of(first, second, session_id))[1]

    def list_all(
        self, session_id: str | None = None,
    ) -> list[tuple[str, CombinationRecord]]:
        """Encoded key + record, oldest first. Filters on record.session_id."""
        items = list(self._records.items())
        if session_id is not None:
            sid = normalize_session_id(session_id)
            items = [(k, r) for k, r in items if r.session_id == sid]
        items.sort(key=lambda kr: (kr[1].discovered_at, kr[0]))
        return [(k.encode(), r) for k, r in items]

    def list_first_discoveries(
        self, session_id: str | None = None,
    ) -> list[tuple[str, CombinationRecord]]:
        return [
            (k, r) for k, r in self.list_all(session_id)
            if r.was_first_discovery
        ]

    def check_would_be_first_discovery(
        self, result: str, session_id: str | None = None,
    ) -> bool:
        """Global check; session_id accepted for symmetry only."""
        return is_first_discovery(result, self._records.values())

    def stats(self) -> StoreStats:
        records = list(self._records.values())
        return StoreStats(
            total_combinations=len(records),
            first_discoveries=sum(1 for r in records if r.was_first_discovery),
            sessions_seen=sorted({r.session_id for r in records}),
        )

    def __len__(self) -> int:
        return len(self._records)

    # -- Mutations -----------------------------------------------------------

    async def add(
        self,
        first: str,
        second: str,
        result: str,
        emoji: str,
        session_id: str | None = None,
        generated: bool = False,
    ) -> AddResult:
        """Insert a combination once. Re-adding returns the existing record.

        Raises CombinationKeyConflictError when a different pair already owns
        the encoded key this pair would be persisted under.
        """
        _require(first, "first", session_id)
        _require(second, "second", session_id)
        _require(result, "result", session_id)
        _require(emoji, "emoji", session_id)

        key = StoreKey.of(first, second, session_id)
        async with self._lock:
            slot, existing = self._find(key)
            if existing is not None:
                logger.info(
                    "Combination already exists: %s", slot.encode(),
                    extra={"combination_key": slot.encode(), "session_id": key.session_id},
                )
                return AddResult(slot.encode(), existing, False, False)

            encoded = key.encode()
            owner = self._slots.get(encoded)
            if owner is not None:
                logger.warning(
                    "Key %s already held by pair %r", encoded,
                    (owner.pair.first, owner.pair.second),
                    extra={"combination_key": encoded, "session_id": key.session_id},
                )
                raise CombinationKeyConflictError(
                    encoded, ErrorContext(session_id=key.session_id),
                )

            record = CombinationRecord(
                first=key.pair.first,
                second=key.pair.second,
                result=result,
                emoji=emoji,
                session_id=key.session_id,
                was_first_discovery=is_first_discovery(
                    result, self._records.values(),
                ),
                discovered_at=self._clock(),
                generated=generated,
            )
            self._records[key] = record
            self._slots[encoded] = key

        logger.info(
            "New combination: %s = %s %s%s", encoded, result, emoji,
            " (first discovery)" if record.was_first_discovery else "",
            extra={"combination_key": encoded, "session_id": key.session_id},
        )
        warning = await self._persist()
        self._broadcaster.publish(combination_added_event(encoded, record))
        if record.was_first_discovery:
            self._broadcaster.publish(first_discovery_event(encoded, record))
        return AddResult(
            encoded, record, True, record.was_first_discovery, warning,
        )

    async def delete(self, key: str) -> DeleteResult:
        """Remove by encoded key. Other records' discovery flags are untouched."""
        async with self._lock:
            target = self._slots.pop(key, None)
            if target is None:
                return DeleteResult(False)
            del self._records[target]

        logger.info("Deleted combination: %s", key, extra={"combination_key": key})
        warning = await self._persist()
        self._broadcaster.publish(combination_deleted_event(key))
        return DeleteResult(True, warning)

    async def reset(self) -> tuple[int, str | None]:
        """Remove every record. Returns (removed_count, warning)."""
        async with self._lock:
            removed = len(self._records)
            self._records = {}
            self._slots = {}

        logger.info("Store reset (%d combination(s) removed)", removed)
        warning = await self._persist()
        self._broadcaster.publish(store_reset_event(removed))
        return removed, warning

    # -- Internals -----------------------------------------------------------

    def _find(
        self, key: StoreKey,
    ) -> tuple[StoreKey, CombinationRecord | None]:
        """Exact slot first; default slot only if that record is ours."""
        record = self._records.get(key)
        if record is not None or key.session_id == DEFAULT_SESSION:
            return key, record
        legacy_key = StoreKey(DEFAULT_SESSION, key.pair)
        legacy = self._records.get(legacy_key)
        if legacy is not None and legacy.session_id == key.session_id:
            return legacy_key, legacy
        return key, None

    async def _persist(self) -> str | None:
        """Save the current snapshot. Returns a warning message on failure."""
        async with self._save_lock:
            snapshot = records_to_snapshot(self._records)
            try:
                await asyncio.wait_for(
                    self._repository.save(snapshot),
                    timeout=self._save_timeout,
                )
            except asyncio.TimeoutError:
                error = PersistenceError(
                    f"timed out after {self._save_timeout}s", "save",
                )
            except PersistenceError as e:
                error = e
            except Exception as e:
                logger.error(f"Unexpected persistence failure: {e}", exc_info=True)
                error = PersistenceError(str(e), "save")
            else:
                return None
        logger.warning(
            f"{error.message}; in-memory state kept",
            extra={"error_code": error.code},
        )
        return error.message
