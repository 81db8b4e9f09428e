# willard/infra/db/gateway.py
from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

from willard.constants import ENTITY_TABLES
from willard.domain.common.errors import StorageError, StorageInitError
from willard.domain.common.time import to_iso
from willard.domain.ports import Clock
from willard.infra.clock.system_clock import SystemClock
from willard.infra.db.connection import Database
from willard.infra.db.repo.completion_logs_sqlite import CompletionLogSqliteDao
from willard.infra.db.repo.daily_progress_sqlite import DailyProgressSqliteDao
from willard.infra.db.repo.tasks_sqlite import TaskSqliteDao
from willard.infra.db.schema_version import apply_migrations

logger = logging.getLogger(__name__)


class AppDatabase:
    """
    Owns the on-disk store and hands out its DAOs.

    Construct with `await AppDatabase.open(path)` once in the composition root
    and pass the instance around; DAOs are created on first request and cached.

    `destructive_migration=True` wipes a store whose schema cannot be migrated
    (or which is not a database at all) instead of failing. It loses user data
    and is meant for development only.
    """

    def __init__(self, path: Path, clock: Clock, destructive_migration: bool = False) -> None:
        self._path = path
        self._clock = clock
        self._destructive = destructive_migration
        self._lock = asyncio.Lock()
        self._db: Optional[Database] = None
        self._schema_version = 0
        self._task_dao: Optional[TaskSqliteDao] = None
        self._daily_progress_dao: Optional[DailyProgressSqliteDao] = None
        self._completion_log_dao: Optional[CompletionLogSqliteDao] = None

    @classmethod
    async def open(
        cls,
        path: Union[str, Path],
        *,
        destructive_migration: bool = False,
        clock: Optional[Clock] = None,
    ) -> "AppDatabase":
        gateway = cls(Path(path), clock or SystemClock(), destructive_migration)
        await gateway._open()
        return gateway

    @property
    def path(self) -> Path:
        return self._path

    @property
    def schema_version(self) -> int:
        return self._schema_version

    @property
    def closed(self) -> bool:
        return self._db is None or self._db.closed

    @property
    def database(self) -> Database:
        if self._db is None:
            raise StorageError(f"database is not open: {self._path}")
        return self._db

    def task_dao(self) -> TaskSqliteDao:
        if self._task_dao is None:
            self._task_dao = TaskSqliteDao(self.database, self._clock)
        return self._task_dao

    def daily_progress_dao(self) -> DailyProgressSqliteDao:
        if self._daily_progress_dao is None:
            self._daily_progress_dao = DailyProgressSqliteDao(self.database, self._clock)
        return self._daily_progress_dao

    def completion_log_dao(self) -> CompletionLogSqliteDao:
        if self._completion_log_dao is None:
            self._completion_log_dao = CompletionLogSqliteDao(self.database, self._clock)
        return self._completion_log_dao

    async def clear_all_tables(self) -> None:
        """Data reset: remove every task, progress record and completion log."""
        db = self.database
        async with db.transaction() as conn:
            for table in ENTITY_TABLES:
                await conn.execute(f"DELETE FROM {table};")
        db.invalidation.notify(*ENTITY_TABLES)
        logger.info("Cleared all tables in %s", self._path)

    async def close(self) -> None:
        async with self._lock:
            if self._db is None or self._db.closed:
                return
            self._db.close()
            logger.info("Database closed: %s", self._path)

    async def __aenter__(self) -> "AppDatabase":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _open(self) -> None:
        async with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageInitError(f"cannot create storage directory for {self._path}: {e}") from e

            try:
                db = await self._prepare()
            except StorageInitError:
                raise
            except StorageError as e:
                if not (self._destructive and _is_not_a_database(e)):
                    raise StorageInitError(f"cannot open {self._path}: {e}") from e
                logger.warning("DESTRUCTIVE MIGRATION: %s is not a usable database; recreating it", self._path)
                _remove_store_files(self._path)
                try:
                    db = await self._prepare()
                except StorageError as e2:
                    raise StorageInitError(f"cannot recreate {self._path}: {e2}") from e2

            self._db = db
            logger.info("Database ready: %s (schema v%s)", self._path, self._schema_version)

    async def _prepare(self) -> Database:
        db = Database(str(self._path), ENTITY_TABLES)
        await db.fetchone("PRAGMA journal_mode=WAL;")
        self._schema_version = await apply_migrations(
            db,
            now_iso=to_iso(self._clock.now()),
            destructive=self._destructive,
        )
        return db


def _is_not_a_database(error: StorageError) -> bool:
    cause = error.__cause__
    # OperationalError (locked, read-only, unopenable) is not a corrupt file
    return isinstance(cause, sqlite3.DatabaseError) and not isinstance(cause, sqlite3.OperationalError)


def _remove_store_files(path: Path) -> None:
    for suffix in ("", "-wal", "-shm"):
        candidate = path.with_name(path.name + suffix)
        try:
            candidate.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageInitError(f"cannot remove {candidate}: {e}") from e
