# willard/infra/db/connection.py
from __future__ import annotations

import contextlib
import sqlite3
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, Sequence, TypeVar

import aiosqlite

from willard.domain.common.errors import StorageError
from willard.infra.db.invalidation import InvalidationTracker, QueryObservation

T = TypeVar("T")

BUSY_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ExecResult:
    lastrowid: Optional[int]
    rowcount: int


class Database:
    """
    Async SQLite helper:
    - opens a new connection per operation (simple + safe)
    - sets row_factory to aiosqlite.Row
    - enables foreign keys, relies on WAL set once at open
    - every write commits before returning
    - sqlite failures other than constraint violations surface as StorageError
    """

    def __init__(self, path: str, tables: Iterable[str] = ()) -> None:
        self._path = path
        self._closed = False
        self.invalidation = InvalidationTracker(tables)

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        self.invalidation.close()

    @contextlib.asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._closed:
            raise StorageError(f"database is closed: {self._path}")
        try:
            async with aiosqlite.connect(self._path, timeout=BUSY_TIMEOUT_SECONDS) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys=ON;")
                yield db
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise StorageError(f"sqlite error on {self._path}: {e}") from e

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """One write transaction; commits on success, rolls back on any error."""
        async with self.connect() as db:
            await db.execute("BEGIN IMMEDIATE;")
            try:
                yield db
            except BaseException:
                await db.rollback()
                raise
            await db.commit()

    async def executescript(self, sql: str) -> None:
        async with self.connect() as db:
            await db.executescript(sql)
            await db.commit()

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        async with self.connect() as db:
            cur = await db.execute(sql, params)
            await db.commit()
            return ExecResult(lastrowid=cur.lastrowid, rowcount=cur.rowcount)

    async def executemany(self, sql: str, seq_of_params: Iterable[Sequence[Any]]) -> None:
        async with self.connect() as db:
            await db.executemany(sql, seq_of_params)
            await db.commit()

    async def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[aiosqlite.Row]:
        async with self.connect() as db:
            cur = await db.execute(sql, params)
            return await cur.fetchone()

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        async with self.connect() as db:
            cur = await db.execute(sql, params)
            return list(await cur.fetchall())

    def observe(self, table: str, fetch: Callable[[], Awaitable[T]]) -> QueryObservation[T]:
        """Live query: runs `fetch` now and after every write to `table`."""
        return QueryObservation(self.invalidation.subscribe(table), fetch)
