# willard/infra/db/repo/tasks_sqlite.py
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional, Sequence

from willard.constants import TABLE_TASKS, TASK_STATUS_COMPLETED
from willard.domain.common.errors import InvalidArgumentError, NotFoundError
from willard.domain.common.time import from_iso, to_iso
from willard.domain.ports import LiveQuery, TaskDao
from willard.domain.tasks.rules import validate_task
from willard.infra.db.repo.base import BaseSqliteDao
from willard.models import Task

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, title, description, status, due_at, start_at, is_recurring, created_at, completed_at, schedule_mask"
)


class TaskSqliteDao(BaseSqliteDao, TaskDao):
    """tasks table. Deleting a task leaves its completion logs in place."""

    async def insert(self, task: Task) -> int:
        validate_task(task)
        now = self._now_iso()
        params = (
            task.title.strip(),
            task.description,
            task.status,
            to_iso(task.due_at) if task.due_at else None,
            to_iso(task.start_at) if task.start_at else now,
            1 if task.is_recurring else 0,
            to_iso(task.created_at) if task.created_at else now,
            to_iso(task.completed_at) if task.completed_at else None,
            task.schedule_mask,
        )
        if task.id is None:
            try:
                res = await self._db.execute(
                    """
                    INSERT INTO tasks (title, description, status, due_at, start_at, is_recurring, created_at, completed_at, schedule_mask)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    params,
                )
            except sqlite3.IntegrityError as e:
                raise InvalidArgumentError(f"Task rejected by the store: {e}") from e
        else:
            try:
                res = await self._db.execute(
                    """
                    INSERT INTO tasks (id, title, description, status, due_at, start_at, is_recurring, created_at, completed_at, schedule_mask)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (task.id, *params),
                )
            except sqlite3.IntegrityError as e:
                if await self._db.fetchone("SELECT 1 FROM tasks WHERE id = ?;", (task.id,)):
                    raise InvalidArgumentError(f"Task id {task.id} already exists.") from e
                raise InvalidArgumentError(f"Task rejected by the store: {e}") from e

        task_id = int(res.lastrowid)
        self._db.invalidation.notify(TABLE_TASKS)
        logger.debug("Inserted task id=%s status=%s", task_id, task.status)
        return task_id

    async def update(self, task: Task) -> None:
        if task.id is None:
            raise InvalidArgumentError("Cannot update a task without id.")
        validate_task(task)
        res = await self._db.execute(
            """
            UPDATE tasks
            SET title = ?,
                description = ?,
                status = ?,
                due_at = ?,
                start_at = COALESCE(?, start_at),
                is_recurring = ?,
                completed_at = ?,
                schedule_mask = ?
            WHERE id = ?;
            """,
            (
                task.title.strip(),
                task.description,
                task.status,
                to_iso(task.due_at) if task.due_at else None,
                to_iso(task.start_at) if task.start_at else None,
                1 if task.is_recurring else 0,
                to_iso(task.completed_at) if task.completed_at else None,
                task.schedule_mask,
                task.id,
            ),
        )
        if res.rowcount == 0:
            raise NotFoundError(f"Task {task.id} not found.")
        self._db.invalidation.notify(TABLE_TASKS)

    async def delete(self, task_id: int) -> None:
        res = await self._db.execute("DELETE FROM tasks WHERE id = ?;", (task_id,))
        if res.rowcount == 0:
            raise NotFoundError(f"Task {task_id} not found.")
        self._db.invalidation.notify(TABLE_TASKS)
        logger.debug("Deleted task id=%s", task_id)

    async def get_by_id(self, task_id: int) -> Optional[Task]:
        row = await self._db.fetchone(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?;", (task_id,))
        return self._row_to_task(row) if row else None

    async def get_all(self) -> Sequence[Task]:
        rows = await self._db.fetchall(f"SELECT {_COLUMNS} FROM tasks ORDER BY created_at ASC, id ASC;")
        return [self._row_to_task(r) for r in rows]

    def observe_all(self) -> LiveQuery:
        return self._db.observe(TABLE_TASKS, self.get_all)

    async def count_completed(self) -> int:
        row = await self._db.fetchone(
            "SELECT COUNT(*) AS count FROM tasks WHERE status = ?;", (TASK_STATUS_COMPLETED,)
        )
        return int(row["count"])

    def observe_completed_count(self) -> LiveQuery:
        return self._db.observe(TABLE_TASKS, self.count_completed)

    async def count_completed_on_time(self) -> int:
        """Completed tasks with a deadline that were finished at or before it."""
        row = await self._db.fetchone(
            """
            SELECT COUNT(*) AS count
            FROM tasks
            WHERE completed_at IS NOT NULL AND due_at IS NOT NULL AND completed_at <= due_at;
            """
        )
        return int(row["count"])

    async def count_missed_deadlines(self, as_of: datetime) -> int:
        row = await self._db.fetchone(
            "SELECT COUNT(*) AS count FROM tasks WHERE due_at IS NOT NULL AND due_at < ? AND status != ?;",
            (to_iso(as_of), TASK_STATUS_COMPLETED),
        )
        return int(row["count"])

    async def get_overdue(self, as_of: datetime) -> Sequence[Task]:
        rows = await self._db.fetchall(
            f"""
            SELECT {_COLUMNS}
            FROM tasks
            WHERE due_at IS NOT NULL AND due_at < ? AND status != ?
            ORDER BY due_at ASC, id ASC;
            """,
            (to_iso(as_of), TASK_STATUS_COMPLETED),
        )
        return [self._row_to_task(r) for r in rows]

    def _row_to_task(self, row) -> Task:
        return Task(
            id=int(row["id"]),
            title=row["title"],
            description=row["description"],
            status=row["status"],
            due_at=from_iso(row["due_at"]) if row["due_at"] else None,
            start_at=from_iso(row["start_at"]),
            is_recurring=bool(row["is_recurring"]),
            created_at=from_iso(row["created_at"]),
            completed_at=from_iso(row["completed_at"]) if row["completed_at"] else None,
            schedule_mask=row["schedule_mask"],
        )
