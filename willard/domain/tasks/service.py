from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Set

from willard.constants import TASK_STATUS_COMPLETED, TASK_STATUS_TODO
from willard.domain.common.errors import NotFoundError
from willard.domain.common.time import end_of_day, local_day, start_of_day
from willard.domain.ports import Clock, CompletionLogDao, DailyProgressDao, TaskDao
from willard.domain.tasks.rules import validate_status, validate_title
from willard.domain.tasks.schedule import is_scheduled
from willard.models import DailyProgress, Task, TaskCompletionLog

logger = logging.getLogger(__name__)

# window a recurring task gets on the day it is reset: 00:01 to 23:59
RECURRING_START_OFFSET = timedelta(minutes=1)
RECURRING_DUE_OFFSET = timedelta(hours=23, minutes=59)


class TaskService:
    """
    Task business logic. No sqlite.

    Calendar days are taken in the clock's timezone.
    """

    def __init__(
        self,
        tasks: TaskDao,
        progress: DailyProgressDao,
        logs: CompletionLogDao,
        clock: Clock,
    ) -> None:
        self._tasks = tasks
        self._progress = progress
        self._logs = logs
        self._clock = clock

    def today(self) -> date:
        now = self._clock.now()
        return local_day(now, now.tzinfo)

    async def add_task(
        self,
        title: str,
        *,
        description: str = "",
        start_at: Optional[datetime] = None,
        due_at: Optional[datetime] = None,
        is_recurring: bool = False,
        schedule_mask: Optional[int] = None,
    ) -> Task:
        validate_title(title)
        now = self._clock.now()
        task = Task(
            title=title.strip(),
            description=description,
            start_at=start_at or now,
            due_at=due_at,
            is_recurring=is_recurring,
            created_at=now,
            schedule_mask=schedule_mask,
        )
        task_id = await self._tasks.insert(task)
        logger.info("Task created id=%s recurring=%s", task_id, is_recurring)
        return replace(task, id=task_id)

    async def update_task(self, task: Task) -> Task:
        existing = await self._require(task.id)
        # completion stamp only survives while the task stays completed
        completed_at = existing.completed_at if task.is_completed else None
        updated = replace(task, completed_at=completed_at)
        await self._tasks.update(updated)
        return updated

    async def update_task_status(self, task_id: int, new_status: str) -> Task:
        validate_status(new_status)
        task = await self._require(task_id)
        if task.status == new_status:
            return task

        now = self._clock.now()
        just_completed = new_status == TASK_STATUS_COMPLETED
        if just_completed:
            completed_at = task.completed_at or now
        else:
            completed_at = None

        updated = replace(task, status=new_status, completed_at=completed_at)
        await self._tasks.update(updated)

        if just_completed:
            await self._logs.append(
                TaskCompletionLog(task_id=task_id, date=local_day(now, now.tzinfo), created_at=now)
            )
        logger.info("Task %s: %s -> %s", task_id, task.status, new_status)

        await self.refresh_daily_progress()
        return updated

    async def delete_task(self, task_id: int) -> None:
        await self._tasks.delete(task_id)
        logger.info("Task deleted id=%s", task_id)
        await self.refresh_daily_progress()

    async def refresh_daily_progress(self, day: Optional[date] = None) -> DailyProgress:
        """Snapshot of tasks started by the end of `day`: completed vs total."""
        now = self._clock.now()
        day = day or local_day(now, now.tzinfo)
        cutoff = end_of_day(day, now.tzinfo)
        active = [t for t in await self._tasks.get_all() if t.start_at is None or t.start_at <= cutoff]
        completed = sum(1 for t in active if t.is_completed)
        return await self._progress.upsert(day, completed, len(active))

    async def refresh_recurring_tasks(self) -> int:
        """
        Reset recurring tasks completed on an earlier day back to TODO and move
        their window to today. Tasks whose schedule skips today stay completed.
        """
        now = self._clock.now()
        today = local_day(now, now.tzinfo)
        day_start = start_of_day(today, now.tzinfo)
        reset = 0
        for task in await self._tasks.get_all():
            if not (task.is_recurring and task.is_completed):
                continue
            done_day = local_day(task.completed_at, now.tzinfo) if task.completed_at else None
            if done_day is not None and done_day >= today:
                continue
            if not is_scheduled(task.schedule_mask, today):
                continue
            await self._tasks.update(
                replace(
                    task,
                    status=TASK_STATUS_TODO,
                    completed_at=None,
                    start_at=day_start + RECURRING_START_OFFSET,
                    due_at=day_start + RECURRING_DUE_OFFSET,
                )
            )
            reset += 1
        if reset:
            logger.info("Reset %s recurring task(s) for %s", reset, today)
        return reset

    async def get_overdue(self) -> Sequence[Task]:
        return await self._tasks.get_overdue(self._clock.now())

    async def missed_deadline_count(self) -> int:
        return await self._tasks.count_missed_deadlines(self._clock.now())

    async def calculate_current_streak(self) -> int:
        """Consecutive days, ending today, with at least one completed task."""
        today = self.today()
        history = await self._progress.get_range(date.min, today)
        by_day = {p.date: p.tasks_completed_count for p in history}
        streak = 0
        expected = today
        while by_day.get(expected, 0) > 0:
            streak += 1
            expected -= timedelta(days=1)
        return streak

    async def task_streak(self, task_id: int) -> int:
        """Consecutive completion days of one task, ending today or yesterday."""
        logs = await self._logs.get_for_task(task_id)
        days = {log.date for log in logs if log.is_completed}
        if not days:
            return 0
        today = self.today()
        expected = today if today in days else today - timedelta(days=1)
        streak = 0
        while expected in days:
            streak += 1
            expected -= timedelta(days=1)
        return streak

    async def best_streak(self) -> int:
        """Longest run of consecutive completion days of any recurring task."""
        best = 0
        for task in await self._tasks.get_all():
            if not task.is_recurring:
                continue
            logs = await self._logs.get_for_task(task.id)
            best = max(best, _longest_run({log.date for log in logs if log.is_completed}))
        return best

    async def _require(self, task_id: Optional[int]) -> Task:
        task = await self._tasks.get_by_id(task_id) if task_id is not None else None
        if task is None:
            raise NotFoundError(f"Task {task_id} not found.")
        return task


def _longest_run(days: Set[date]) -> int:
    best = 0
    current = 0
    previous: Optional[date] = None
    for day in sorted(days):
        current = current + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, current)
        previous = day
    return best
