# willard/infra/db/repo/daily_progress_sqlite.py
from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from willard.constants import TABLE_DAILY_PROGRESS
from willard.domain.common.time import day_from_iso, day_to_iso
from willard.domain.ports import DailyProgressDao, LiveQuery
from willard.domain.tasks.rules import validate_counts, validate_day, validate_day_range
from willard.infra.db.repo.base import BaseSqliteDao
from willard.models import DailyProgress


class DailyProgressSqliteDao(BaseSqliteDao, DailyProgressDao):
    """daily_progress table: one row per calendar day, last writer wins."""

    async def upsert(self, day: date, completed: int, total: int) -> DailyProgress:
        validate_day(day)
        validate_counts(completed, total)
        await self._db.execute(
            """
            INSERT INTO daily_progress (date, tasks_completed_count, tasks_total_count, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(date) DO UPDATE SET
                tasks_completed_count = excluded.tasks_completed_count,
                tasks_total_count = excluded.tasks_total_count,
                updated_at = excluded.updated_at;
            """,
            (day_to_iso(day), completed, total, self._now_iso()),
        )
        self._db.invalidation.notify(TABLE_DAILY_PROGRESS)
        return DailyProgress(date=day, tasks_completed_count=completed, tasks_total_count=total)

    async def increment_completed(self, day: date) -> None:
        """+1 on the day's completed count; no-op when the day has no record."""
        res = await self._db.execute(
            """
            UPDATE daily_progress
            SET tasks_completed_count = tasks_completed_count + 1, updated_at = ?
            WHERE date = ?;
            """,
            (self._now_iso(), day_to_iso(day)),
        )
        if res.rowcount:
            self._db.invalidation.notify(TABLE_DAILY_PROGRESS)

    async def get_by_date(self, day: date) -> Optional[DailyProgress]:
        row = await self._db.fetchone(
            "SELECT date, tasks_completed_count, tasks_total_count FROM daily_progress WHERE date = ?;",
            (day_to_iso(day),),
        )
        return self._row_to_progress(row) if row else None

    async def get_range(self, start: date, end: date) -> Sequence[DailyProgress]:
        validate_day_range(start, end)
        rows = await self._db.fetchall(
            """
            SELECT date, tasks_completed_count, tasks_total_count
            FROM daily_progress
            WHERE date >= ? AND date <= ?
            ORDER BY date ASC;
            """,
            (day_to_iso(start), day_to_iso(end)),
        )
        return [self._row_to_progress(r) for r in rows]

    def observe_range(self, start: date, end: date) -> LiveQuery:
        validate_day_range(start, end)
        return self._db.observe(TABLE_DAILY_PROGRESS, lambda: self.get_range(start, end))

    async def get_history(self) -> Sequence[DailyProgress]:
        rows = await self._db.fetchall(
            "SELECT date, tasks_completed_count, tasks_total_count FROM daily_progress ORDER BY date DESC;"
        )
        return [self._row_to_progress(r) for r in rows]

    def observe_history(self) -> LiveQuery:
        return self._db.observe(TABLE_DAILY_PROGRESS, self.get_history)

    def _row_to_progress(self, row) -> DailyProgress:
        return DailyProgress(
            date=day_from_iso(row["date"]),
            tasks_completed_count=int(row["tasks_completed_count"]),
            tasks_total_count=int(row["tasks_total_count"]),
        )
