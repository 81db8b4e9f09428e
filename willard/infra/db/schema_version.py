from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from willard.constants import ENTITY_TABLES
from willard.domain.common.errors import StorageInitError
from willard.infra.db.connection import Database

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def discover_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> Dict[int, Path]:
    """version -> file, from files named NNN_description.sql."""
    files = sorted([p for p in Path(migrations_dir).glob("*.sql") if p.is_file()])
    return {int(p.stem.split("_")[0]): p for p in files}


async def apply_migrations(
    db: Database,
    now_iso: str,
    migrations_dir: Path = MIGRATIONS_DIR,
    destructive: bool = False,
) -> int:
    """
    Bring the store up to the latest known schema and return its version.

    Raises StorageInitError when the stored schema cannot be migrated: a version
    newer than any known migration, or entity tables with no version history.
    With `destructive=True` such a store is wiped and rebuilt instead.
    """
    await db.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL);"
    )
    migrations = discover_migrations(migrations_dir)
    latest = max(migrations) if migrations else 0

    rows = await db.fetchall("SELECT version FROM schema_migrations;")
    applied = {int(r["version"]) for r in rows}

    problem = await _incompatibility(db, applied, latest)
    if problem:
        if not destructive:
            raise StorageInitError(f"{problem} and no migration path is configured ({db.path})")
        logger.warning("DESTRUCTIVE MIGRATION: %s; dropping all data in %s", problem, db.path)
        await drop_all_tables(db)
        await db.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL);"
        )
        applied = set()

    for version, path in sorted(migrations.items()):
        if version in applied:
            continue

        sql = path.read_text(encoding="utf-8")
        await db.executescript(sql)

        await db.execute(
            "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?);",
            (version, now_iso),
        )
        logger.info("Applied migration %s (%s)", version, path.name)

    return latest


async def current_version(db: Database) -> int:
    row = await db.fetchone("SELECT MAX(version) AS version FROM schema_migrations;")
    return int(row["version"] or 0) if row else 0


async def drop_all_tables(db: Database) -> None:
    rows = await db.fetchall(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%';"
    )
    if not rows:
        return
    statements = ["PRAGMA foreign_keys=OFF;"]
    statements += [f'DROP TABLE IF EXISTS "{r["name"]}";' for r in rows]
    await db.executescript("\n".join(statements))


async def _incompatibility(db: Database, applied: set, latest: int) -> str:
    if applied and max(applied) > latest:
        return f"stored schema version {max(applied)} is newer than supported version {latest}"
    if not applied:
        placeholders = ", ".join("?" for _ in ENTITY_TABLES)
        row = await db.fetchone(
            f"SELECT COUNT(*) AS n FROM sqlite_master WHERE type = 'table' AND name IN ({placeholders});",
            ENTITY_TABLES,
        )
        if row and row["n"]:
            return "found tables without schema version history"
    return ""
