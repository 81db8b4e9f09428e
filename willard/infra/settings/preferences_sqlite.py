# willard/infra/settings/preferences_sqlite.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from willard.domain.common.errors import StorageError, StorageInitError
from willard.domain.common.time import to_iso
from willard.domain.ports import Clock
from willard.infra.db.connection import Database

logger = logging.getLogger(__name__)


class PreferencesStore:
    """
    Small key-value store kept in its own sqlite file, independent of the
    relational store. Values are JSON encoded.
    """

    def __init__(self, db: Database, clock: Clock) -> None:
        self._db = db
        self._clock = clock

    @classmethod
    async def open(cls, path: Union[str, Path], clock: Clock) -> "PreferencesStore":
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            db = Database(str(path))
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
        except (OSError, StorageError) as e:
            raise StorageInitError(f"cannot open preference store {path}: {e}") from e
        logger.info("Preference store ready: %s", path)
        return cls(db, clock)

    async def load_all(self) -> Dict[str, Any]:
        """Stored values by key. Rows that do not decode are skipped so defaults apply."""
        rows = await self._db.fetchall("SELECT key, value FROM preferences;")
        values: Dict[str, Any] = {}
        for r in rows:
            try:
                values[r["key"]] = json.loads(r["value"])
            except json.JSONDecodeError:
                logger.warning("Ignoring undecodable preference %r: %r", r["key"], r["value"])
        return values

    async def put(self, key: str, value: Any) -> None:
        await self._db.execute(
            """
            INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at;
            """,
            (key, json.dumps(value), to_iso(self._clock.now())),
        )

    async def clear(self) -> None:
        await self._db.execute("DELETE FROM preferences;")

    def close(self) -> None:
        self._db.close()
