"""SQL Combination Repository — persistence gateway backed by the combinations table.

Invariants:
    - save() replaces the table contents with the snapshot in ONE transaction
    - load() returns the same dict shape the JSON gateway returns
    - Failures surface as PersistenceError via DatabaseSessionManager

Design Decisions:
    - Full replace over row diffing: the store hands over full snapshots and
      the table is bounded by the game's item space
    - Naive datetimes from SQLite are read back as UTC
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select

from craftsync.infrastructure.database import DatabaseSessionManager
from craftsync.models.combination import Combination

logger = logging.getLogger(__name__)


def _parse_discovered_at(value: object) -> datetime:
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_dict(row: Combination) -> dict:
    return {
        "first": row.first,
        "second": row.second,
        "result": row.result,
        "emoji": row.emoji,
        "sessionId": row.session_id,
        "wasFirstDiscovery": row.was_first_discovery,
        "discoveredAt": _parse_discovered_at(row.discovered_at).isoformat(),
        "generated": row.generated,
    }


class SqlCombinationRepository:
    """Stores the combination snapshot as rows of the combinations table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def load(self) -> dict[str, dict]:
        async with self._db.session() as session:
            rows = (await session.execute(select(Combination))).scalars().all()
        return {row.key: _row_to_dict(row) for row in rows}

    async def save(self, snapshot: dict[str, dict]) -> None:
        async with self._db.session() as session:
            await session.execute(delete(Combination))
            session.add_all([
                Combination(
                    key=key,
                    session_id=data.get("sessionId") or "default",
                    first=data["first"],
                    second=data["second"],
                    result=data["result"],
                    emoji=data["emoji"],
                    was_first_discovery=bool(data.get("wasFirstDiscovery")),
                    generated=bool(data.get("generated")),
                    discovered_at=_parse_discovered_at(data.get("discoveredAt")),
                )
                for key, data in snapshot.items()
            ])
            await session.commit()
        logger.debug("Saved %d combination row(s)", len(snapshot))
