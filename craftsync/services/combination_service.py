"""Combination Service — the operations the HTTP shell is allowed to call.

Invariants:
    - lookup/remove raise CombinationNotFoundError on a miss; no state change
    - record/remove never fail because of persistence; failures come back as a warning
    - generate records only model-produced candidates, never the fallback
    - publish is not exposed: events originate from store mutations only

Design Decisions:
    - Thin facade over CombinationStore + ChangeBroadcaster: routes stay free of
      store internals and never touch the broadcaster's publish path
    - Generator optional: None means generation is disabled and the fallback is returned
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from craftsync.core.combination_record import CombinationRecord
from craftsync.core.errors import (
    CombinationNotFoundError, CombinationValidationError, ErrorContext,
)
from craftsync.core.pair_key import StoreKey
from craftsync.services.change_broadcaster import ChangeBroadcaster, QueueSubscriber
from craftsync.services.combination_generator import (
    FALLBACK, CombinationGenerator, GeneratedCombination,
)
from craftsync.services.combination_store import (
    AddResult, CombinationStore, DeleteResult,
)

logger = logging.getLogger(__name__)

# Base elements' combinations recorded on a fresh store
DEFAULT_COMBINATIONS: tuple[tuple[str, str, str, str], ...] = (
    ("Earth", "Fire", "Lava", "🌋"),
    ("Fire", "Water", "Steam", "💨"),
    ("Earth", "Water", "Plant", "🌱"),
    ("Fire", "Wind", "Smoke", "💨"),
    ("Water", "Wind", "Wave", "🌊"),
    ("Earth", "Wind", "Dust", "🌪️"),
)


@dataclass(frozen=True)
class GenerateOutcome:
    key: str
    candidate: GeneratedCombination
    record: CombinationRecord | None
    existed: bool
    is_first_discovery: bool = False
    warning: str | None = None


class CombinationService:
    """Facade exposing lookup/record/remove/subscribe to the shell."""

    def __init__(
        self,
        store: CombinationStore,
        broadcaster: ChangeBroadcaster,
        generator: CombinationGenerator | None = None,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.generator = generator
        self._started_monotonic = time.monotonic()
        self.started_at = datetime.now(timezone.utc)

    async def seed_defaults(self) -> int:
        """Record the base combinations if the store is empty. Returns inserts."""
        if len(self.store):
            return 0
        inserted = 0
        for first, second, result, emoji in DEFAULT_COMBINATIONS:
            added = await self.store.add(first, second, result, emoji)
            inserted += int(added.is_new)
        logger.info("Seeded %d default combination(s)", inserted)
        return inserted

    def lookup(
        self, first: str, second: str, session_id: str | None = None,
    ) -> CombinationRecord:
        record = self.store.get(first, second, session_id)
        if record is None:
            key = StoreKey.of(first, second, session_id).encode()
            raise CombinationNotFoundError(
                key, ErrorContext(session_id=session_id),
            )
        return record

    async def record(
        self,
        first: str,
        second: str,
        result: str,
        emoji: str,
        session_id: str | None = None,
    ) -> AddResult:
        return await self.store.add(first, second, result, emoji, session_id)

    async def generate(
        self, first: str, second: str, session_id: str | None = None,
    ) -> GenerateOutcome:
        """Return the recorded result, or invent and record a new one."""
        for field, value in (("first", first), ("second", second)):
            if not isinstance(value, str) or not value.strip():
                raise CombinationValidationError(
                    f"Missing required field: {field}", field,
                    ErrorContext(session_id=session_id),
                )

        key = StoreKey.of(first, second, session_id).encode()
        existing = self.store.get(first, second, session_id)
        if existing is not None:
            candidate = GeneratedCombination(
                existing.result, existing.emoji, existing.generated,
            )
            return GenerateOutcome(key, candidate, existing, existed=True)

        if self.generator is None:
            logger.info("Generation disabled, returning fallback for %s", key)
            return GenerateOutcome(key, FALLBACK, None, existed=False)

        candidate = await self.generator.generate(first, second, session_id)
        if not candidate.generated:
            return GenerateOutcome(key, candidate, None, existed=False)

        added = await self.store.add(
            first, second, candidate.result, candidate.emoji,
            session_id, generated=True,
        )
        return GenerateOutcome(
            added.key, candidate, added.record,
            existed=not added.is_new,
            is_first_discovery=added.is_first_discovery,
            warning=added.warning,
        )

    def list_all(self, session_id: str | None = None):
        return self.store.list_all(session_id)

    def list_first_discoveries(self, session_id: str | None = None):
        return self.store.list_first_discoveries(session_id)

    def would_be_first_discovery(
        self, result: str, session_id: str | None = None,
    ) -> bool:
        return self.store.check_would_be_first_discovery(result, session_id)

    async def remove(self, key: str) -> DeleteResult:
        outcome = await self.store.delete(key)
        if not outcome.removed:
            raise CombinationNotFoundError(key)
        return outcome

    async def reset(self) -> tuple[int, str | None]:
        return await self.store.reset()

    def subscribe(self) -> QueueSubscriber:
        return self.broadcaster.subscribe()

    def unsubscribe(self, handle: QueueSubscriber) -> None:
        self.broadcaster.unsubscribe(handle)

    def stats(self) -> dict:
        store_stats = self.store.stats()
        return {
            "totalCombinations": store_stats.total_combinations,
            "firstDiscoveries": store_stats.first_discoveries,
            "sessionsSeen": store_stats.sessions_seen,
            "activeSubscribers": self.broadcaster.subscriber_count,
            "serverStartTime": self.started_at.isoformat(),
            "uptimeSeconds": round(time.monotonic() - self._started_monotonic, 3),
        }
