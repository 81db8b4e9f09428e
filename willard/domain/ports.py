from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import date, datetime
from typing import Optional, Sequence

from willard.domain.common.observable import Observable
from willard.models import DailyProgress, Task, TaskCompletionLog


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...


class LiveQuery(AsyncIterator):
    """
    Ongoing sequence of query results.

    Yields the current result immediately, then a fresh one after every
    committed write to the underlying table. `cancel()` (or leaving an
    `async with` block) stops emissions and releases the subscription.
    """

    @abstractmethod
    def cancel(self) -> None: ...

    async def aclose(self) -> None:
        self.cancel()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class TaskDao(ABC):
    @abstractmethod
    async def insert(self, task: Task) -> int: ...

    @abstractmethod
    async def update(self, task: Task) -> None: ...

    @abstractmethod
    async def delete(self, task_id: int) -> None: ...

    @abstractmethod
    async def get_by_id(self, task_id: int) -> Optional[Task]: ...

    @abstractmethod
    async def get_all(self) -> Sequence[Task]: ...

    @abstractmethod
    def observe_all(self) -> LiveQuery: ...

    @abstractmethod
    def observe_completed_count(self) -> LiveQuery: ...

    @abstractmethod
    async def count_completed_on_time(self) -> int: ...

    @abstractmethod
    async def count_missed_deadlines(self, as_of: datetime) -> int: ...

    @abstractmethod
    async def get_overdue(self, as_of: datetime) -> Sequence[Task]: ...


class DailyProgressDao(ABC):
    @abstractmethod
    async def upsert(self, day: date, completed: int, total: int) -> DailyProgress: ...

    @abstractmethod
    async def increment_completed(self, day: date) -> None: ...

    @abstractmethod
    async def get_by_date(self, day: date) -> Optional[DailyProgress]: ...

    @abstractmethod
    async def get_range(self, start: date, end: date) -> Sequence[DailyProgress]: ...

    @abstractmethod
    def observe_range(self, start: date, end: date) -> LiveQuery: ...

    @abstractmethod
    def observe_history(self) -> LiveQuery: ...


class CompletionLogDao(ABC):
    @abstractmethod
    async def append(self, log: TaskCompletionLog) -> int: ...

    @abstractmethod
    async def get_for_task(self, task_id: int) -> Sequence[TaskCompletionLog]: ...

    @abstractmethod
    def observe_for_task(self, task_id: int) -> LiveQuery: ...

    @abstractmethod
    def observe_between(self, start: date, end: date) -> LiveQuery: ...

    @abstractmethod
    async def get_earliest_completion_date(self) -> Optional[date]: ...


class SettingsRepository(ABC):
    @property
    @abstractmethod
    def is_first_launch(self) -> Observable[bool]: ...

    @property
    @abstractmethod
    def has_seen_tutorial(self) -> Observable[bool]: ...

    @property
    @abstractmethod
    def default_timer_minutes(self) -> Observable[int]: ...

    @abstractmethod
    async def set_first_launch_completed(self) -> None: ...

    @abstractmethod
    async def set_tutorial_seen(self) -> None: ...

    @abstractmethod
    async def save_default_timer_minutes(self, minutes: int) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...
