"""JSON File Repository — persistence gateway backed by a single data file.

Invariants:
    - load() returns {} when the file is absent, empty, not UTF-8, not JSON,
      or not a JSON object
    - save() writes atomically (temp file + os.replace): readers never see a torn file
    - Every OS failure surfaces as PersistenceError (core/errors.py)
    - Blocking file IO runs in a worker thread, never on the event loop

Design Decisions:
    - One pretty-printed object keyed by encoded store key: same layout as the
      combinations.json files written before sessions existed
    - ensure_ascii=False: emoji stay readable in the file
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from craftsync.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonFileCombinationRepository:
    """Loads and saves the full combination snapshot as one JSON object."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def load(self) -> dict[str, dict]:
        return await asyncio.to_thread(self._read)

    async def save(self, snapshot: dict[str, dict]) -> None:
        await asyncio.to_thread(self._write, snapshot)

    def _read(self) -> dict[str, dict]:
        if not self.path.exists():
            logger.info("No combination file at %s, starting fresh", self.path)
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Combination file {self.path} is not UTF-8: {e}")
            return {}
        except OSError as e:
            raise PersistenceError(str(e), "load")
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt combination file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error("Combination file %s is not a JSON object", self.path)
            return {}
        return data

    def _write(self, snapshot: dict[str, dict]) -> None:
        payload = json.dumps(snapshot, ensure_ascii=False, indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(str(e), "save")
        logger.debug("Saved %d combination(s) to %s", len(snapshot), self.path)
