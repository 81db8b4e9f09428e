# willard/infra/db/repo/completion_logs_sqlite.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from willard.constants import TABLE_COMPLETION_LOGS
from willard.domain.common.errors import InvalidArgumentError
from willard.domain.common.time import day_from_iso, day_to_iso, from_iso, to_iso
from willard.domain.ports import CompletionLogDao, LiveQuery
from willard.domain.tasks.rules import validate_day_range
from willard.infra.db.repo.base import BaseSqliteDao
from willard.models import TaskCompletionLog

logger = logging.getLogger(__name__)

_COLUMNS = "id, task_id, date, is_completed, created_at"


class CompletionLogSqliteDao(BaseSqliteDao, CompletionLogDao):
    """
    task_completion_logs table, append-only.

    There is no update or delete here; the schema additionally rejects UPDATE
    statements with a trigger. Rows go away only through a data reset.
    """

    async def append(self, log: TaskCompletionLog) -> int:
        if log.id is not None:
            raise InvalidArgumentError("Completion logs are append-only; log already has an id.")
        created_at = to_iso(log.created_at) if log.created_at else self._now_iso()
        res = await self._db.execute(
            """
            INSERT INTO task_completion_logs (task_id, date, is_completed, created_at)
            VALUES (?, ?, ?, ?);
            """,
            (log.task_id, day_to_iso(log.date), 1 if log.is_completed else 0, created_at),
        )
        log_id = int(res.lastrowid)
        self._db.invalidation.notify(TABLE_COMPLETION_LOGS)
        logger.debug("Appended completion log id=%s task_id=%s date=%s", log_id, log.task_id, log.date)
        return log_id

    async def get_for_task(self, task_id: int) -> Sequence[TaskCompletionLog]:
        rows = await self._db.fetchall(
            f"""
            SELECT {_COLUMNS}
            FROM task_completion_logs
            WHERE task_id = ?
            ORDER BY created_at ASC, id ASC;
            """,
            (task_id,),
        )
        return [self._row_to_log(r) for r in rows]

    def observe_for_task(self, task_id: int) -> LiveQuery:
        return self._db.observe(TABLE_COMPLETION_LOGS, lambda: self.get_for_task(task_id))

    async def get_between(self, start: date, end: date) -> Sequence[TaskCompletionLog]:
        validate_day_range(start, end)
        rows = await self._db.fetchall(
            f"""
            SELECT {_COLUMNS}
            FROM task_completion_logs
            WHERE is_completed = 1 AND date >= ? AND date <= ?
            ORDER BY date ASC, created_at ASC, id ASC;
            """,
            (day_to_iso(start), day_to_iso(end)),
        )
        return [self._row_to_log(r) for r in rows]

    def observe_between(self, start: date, end: date) -> LiveQuery:
        validate_day_range(start, end)
        return self._db.observe(TABLE_COMPLETION_LOGS, lambda: self.get_between(start, end))

    async def get_earliest_completion_date(self) -> Optional[date]:
        row = await self._db.fetchone(
            "SELECT MIN(date) AS earliest FROM task_completion_logs WHERE is_completed = 1;"
        )
        return day_from_iso(row["earliest"]) if row and row["earliest"] else None

    def _row_to_log(self, row) -> TaskCompletionLog:
        return TaskCompletionLog(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            date=day_from_iso(row["date"]),
            is_completed=bool(row["is_completed"]),
            created_at=from_iso(row["created_at"]),
        )
