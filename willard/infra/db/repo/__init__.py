# -*- coding: utf-8 -*-
"""sqlite DAOs. Public API: get them from AppDatabase, not by constructing them."""

from willard.infra.db.repo.base import BaseSqliteDao
from willard.infra.db.repo.tasks_sqlite import TaskSqliteDao
from willard.infra.db.repo.daily_progress_sqlite import DailyProgressSqliteDao
from willard.infra.db.repo.completion_logs_sqlite import CompletionLogSqliteDao

__all__ = [
    "BaseSqliteDao",
    "TaskSqliteDao",
    "DailyProgressSqliteDao",
    "CompletionLogSqliteDao",
]
