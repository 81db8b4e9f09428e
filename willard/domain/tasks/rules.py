from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from willard.constants import TASK_STATUSES
from willard.domain.common.errors import InvalidArgumentError
from willard.domain.tasks.schedule import ALL_DAYS
from willard.models import Task

MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 2000


def validate_title(title: str) -> None:
    if not title or not title.strip():
        raise InvalidArgumentError("Task title is required.")
    if len(title.strip()) > MAX_TITLE_LENGTH:
        raise InvalidArgumentError(f"Task title is too long (max {MAX_TITLE_LENGTH} chars).")


def validate_status(status: str) -> None:
    if status not in TASK_STATUSES:
        raise InvalidArgumentError(f"Unknown task status: {status!r}")


def validate_task(task: Task) -> None:
    validate_title(task.title)
    validate_status(task.status)
    if len(task.description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidArgumentError(f"Task description is too long (max {MAX_DESCRIPTION_LENGTH} chars).")
    if task.schedule_mask is not None:
        mask = task.schedule_mask
        if isinstance(mask, bool) or not isinstance(mask, int) or not 1 <= mask <= ALL_DAYS:
            raise InvalidArgumentError(f"Invalid schedule mask: {mask!r}")
    for name in ("due_at", "start_at", "created_at", "completed_at"):
        value = getattr(task, name)
        if value is not None and value.tzinfo is None:
            raise InvalidArgumentError(f"{name} must be timezone-aware")


def validate_counts(completed: int, total: int) -> None:
    if completed < 0 or total < 0:
        raise InvalidArgumentError("Progress counts cannot be negative.")


def validate_day(day: date) -> None:
    if isinstance(day, datetime) or not isinstance(day, date):
        raise InvalidArgumentError(f"Expected a calendar date, got {day!r}")


def validate_day_range(start: date, end: date) -> None:
    validate_day(start)
    validate_day(end)
    if start > end:
        raise InvalidArgumentError(f"Range start {start} is after end {end}.")


def validate_timer_minutes(minutes: Optional[int]) -> int:
    # bool is an int subclass; True minutes is a caller bug
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidArgumentError(f"Timer minutes must be an integer, got {minutes!r}")
    if minutes <= 0:
        raise InvalidArgumentError(f"Timer minutes must be positive, got {minutes}")
    return minutes
