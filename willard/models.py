# -*- coding: utf-8 -*-
"""Shared data models (Task, DailyProgress, TaskCompletionLog)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal, Optional

from willard.constants import TASK_STATUS_COMPLETED, TASK_STATUS_IN_PROGRESS, TASK_STATUS_TODO

TaskStatus = Literal["TODO", "IN_PROGRESS", "COMPLETED"]


@dataclass(frozen=True)
class Task:
    title: str
    description: str = ""
    status: TaskStatus = TASK_STATUS_TODO
    due_at: Optional[datetime] = None  # deadline, aware
    start_at: Optional[datetime] = None  # filled with insert time when None
    is_recurring: bool = False
    created_at: Optional[datetime] = None  # filled with insert time when None
    completed_at: Optional[datetime] = None
    schedule_mask: Optional[int] = None  # recurring only; None = every day
    id: Optional[int] = None  # assigned on insert

    @property
    def is_completed(self) -> bool:
        return self.status == TASK_STATUS_COMPLETED

    @property
    def is_in_progress(self) -> bool:
        return self.status == TASK_STATUS_IN_PROGRESS

    def is_overdue(self, as_of: datetime) -> bool:
        return self.due_at is not None and self.due_at < as_of and not self.is_completed


@dataclass(frozen=True)
class DailyProgress:
    date: date
    tasks_completed_count: int = 0
    tasks_total_count: int = 0

    @property
    def ratio(self) -> float:
        if self.tasks_total_count == 0:
            return 0.0
        return self.tasks_completed_count / self.tasks_total_count


@dataclass(frozen=True)
class TaskCompletionLog:
    task_id: int
    date: date  # calendar day of the completion
    is_completed: bool = True
    created_at: Optional[datetime] = None  # filled with append time when None
    id: Optional[int] = None  # assigned on append
