"""
Database gateway: open/close, DAO caching, schema versioning and the
destructive migration switch.

Run with: python -m pytest tests/test_gateway.py -v
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone

import pytest

from .fakes import FixedClock
from willard.constants import ENTITY_TABLES
from willard.domain.common.errors import StorageError, StorageInitError
from willard.infra.db.connection import Database
from willard.infra.db.gateway import AppDatabase
from willard.infra.db.schema_version import apply_migrations, discover_migrations
from willard.models import Task

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
LATEST_VERSION = max(discover_migrations())


def test_open_creates_store_at_latest_schema(tmp_path):
    """Fresh path -> file exists, schema at latest version, empty tables."""
    async def run():
        path = tmp_path / "nested" / "willard_db.sqlite3"
        async with await AppDatabase.open(path, clock=FixedClock(NOW)) as db:
            assert path.exists()
            assert db.schema_version == LATEST_VERSION
            assert not db.closed
            assert await db.task_dao().get_all() == []

    asyncio.run(run())


def test_dao_accessors_return_cached_instances(tmp_path):
    async def run():
        async with await AppDatabase.open(tmp_path / "w.sqlite3", clock=FixedClock(NOW)) as db:
            assert db.task_dao() is db.task_dao()
            assert db.daily_progress_dao() is db.daily_progress_dao()
            assert db.completion_log_dao() is db.completion_log_dao()

    asyncio.run(run())


def test_reopen_keeps_data(tmp_path):
    """Closing and reopening the same path (a process restart) keeps rows."""
    async def run():
        path = tmp_path / "w.sqlite3"
        db = await AppDatabase.open(path, clock=FixedClock(NOW))
        task_id = await db.task_dao().insert(Task(title="Read"))
        await db.close()

        db = await AppDatabase.open(path, clock=FixedClock(NOW))
        try:
            task = await db.task_dao().get_by_id(task_id)
            assert task is not None
            assert task.title == "Read"
            assert db.schema_version == LATEST_VERSION
        finally:
            await db.close()

    asyncio.run(run())


def test_operations_after_close_raise_storage_error(tmp_path):
    async def run():
        db = await AppDatabase.open(tmp_path / "w.sqlite3", clock=FixedClock(NOW))
        dao = db.task_dao()
        await db.close()
        assert db.closed
        with pytest.raises(StorageError):
            await dao.get_all()
        # second close is a no-op
        await db.close()

    asyncio.run(run())


def test_close_ends_live_queries(tmp_path):
    async def run():
        db = await AppDatabase.open(tmp_path / "w.sqlite3", clock=FixedClock(NOW))
        query = db.task_dao().observe_all()
        assert await anext(query) == []
        await db.close()
        with pytest.raises(StopAsyncIteration):
            await anext(query)

    asyncio.run(run())


def _stamp_future_version(path):
    conn = sqlite3.connect(path)
    try:
        conn.execute("INSERT INTO schema_migrations(version, applied_at) VALUES (99, '2030-01-01');")
        conn.commit()
    finally:
        conn.close()


def test_newer_schema_version_fails_without_destructive_migration(tmp_path):
    """Stored version newer than any known migration -> StorageInitError, data untouched."""
    async def run():
        path = tmp_path / "w.sqlite3"
        db = await AppDatabase.open(path, clock=FixedClock(NOW))
        await db.task_dao().insert(Task(title="Keep me"))
        await db.close()
        _stamp_future_version(path)

        with pytest.raises(StorageInitError):
            await AppDatabase.open(path, clock=FixedClock(NOW))

        conn = sqlite3.connect(path)
        try:
            assert conn.execute("SELECT COUNT(*) FROM tasks;").fetchone()[0] == 1
        finally:
            conn.close()

    asyncio.run(run())


def test_newer_schema_version_is_wiped_with_destructive_migration(tmp_path, caplog):
    async def run():
        path = tmp_path / "w.sqlite3"
        db = await AppDatabase.open(path, clock=FixedClock(NOW))
        await db.task_dao().insert(Task(title="Lost"))
        await db.close()
        _stamp_future_version(path)

        db = await AppDatabase.open(path, destructive_migration=True, clock=FixedClock(NOW))
        try:
            assert db.schema_version == LATEST_VERSION
            assert await db.task_dao().get_all() == []
        finally:
            await db.close()

    with caplog.at_level(logging.WARNING):
        asyncio.run(run())
    assert "DESTRUCTIVE MIGRATION" in caplog.text


def test_tables_without_version_history_are_incompatible(tmp_path):
    """A store with entity tables but no schema_migrations rows cannot be migrated."""
    path = tmp_path / "w.sqlite3"
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE tasks (id INTEGER PRIMARY KEY, name TEXT);")
        conn.commit()
    finally:
        conn.close()

    async def run():
        with pytest.raises(StorageInitError):
            await AppDatabase.open(path, clock=FixedClock(NOW))

        db = await AppDatabase.open(path, destructive_migration=True, clock=FixedClock(NOW))
        try:
            task_id = await db.task_dao().insert(Task(title="Fresh"))
            assert (await db.task_dao().get_by_id(task_id)).title == "Fresh"
        finally:
            await db.close()

    asyncio.run(run())


def test_file_that_is_not_a_database(tmp_path):
    """Garbage file -> StorageInitError; destructive mode recreates the store."""
    path = tmp_path / "w.sqlite3"
    path.write_bytes(b"this is not a sqlite file " * 64)

    async def run():
        with pytest.raises(StorageInitError):
            await AppDatabase.open(path, clock=FixedClock(NOW))

        db = await AppDatabase.open(path, destructive_migration=True, clock=FixedClock(NOW))
        try:
            assert db.schema_version == LATEST_VERSION
            assert await db.task_dao().get_all() == []
        finally:
            await db.close()

    asyncio.run(run())


def test_unusable_location_raises_storage_init_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")

    async def run():
        with pytest.raises(StorageInitError):
            await AppDatabase.open(blocker / "w.sqlite3", clock=FixedClock(NOW))

    asyncio.run(run())


def test_clear_all_tables_empties_every_entity_table(tmp_path):
    async def run():
        async with await AppDatabase.open(tmp_path / "w.sqlite3", clock=FixedClock(NOW)) as db:
            await db.task_dao().insert(Task(title="One"))
            await db.daily_progress_dao().upsert(NOW.date(), 1, 2)
            query = db.task_dao().observe_all()
            assert len(await anext(query)) == 1

            await db.clear_all_tables()

            assert await anext(query) == []
            assert await db.daily_progress_dao().get_by_date(NOW.date()) is None
            query.cancel()

    asyncio.run(run())


def test_store_from_an_older_version_is_upgraded_in_place(tmp_path):
    """A store created before the schedule column keeps its tasks after upgrade."""
    old_dir = tmp_path / "old_migrations"
    old_dir.mkdir()
    for version, migration in sorted(discover_migrations().items()):
        if version < LATEST_VERSION:
            (old_dir / migration.name).write_text(migration.read_text(encoding="utf-8"), encoding="utf-8")
    path = tmp_path / "w.sqlite3"

    async def run():
        old = Database(str(path), ENTITY_TABLES)
        assert await apply_migrations(old, now_iso="2025-01-01T00:00:00+00:00", migrations_dir=old_dir) == LATEST_VERSION - 1
        await old.execute(
            "INSERT INTO tasks (title, start_at, created_at) VALUES ('Legacy', ?, ?);",
            ("2025-01-01T00:00:00.000000+00:00", "2025-01-01T00:00:00.000000+00:00"),
        )
        old.close()

        async with await AppDatabase.open(path, clock=FixedClock(NOW)) as db:
            assert db.schema_version == LATEST_VERSION
            (task,) = await db.task_dao().get_all()
            assert task.title == "Legacy"
            assert task.schedule_mask is None

    asyncio.run(run())
