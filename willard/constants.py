"""
Constants for task status, table names and preference defaults.
"""
from __future__ import annotations

# Task status (stored in tasks.status)
TASK_STATUS_TODO = "TODO"
TASK_STATUS_IN_PROGRESS = "IN_PROGRESS"
TASK_STATUS_COMPLETED = "COMPLETED"
TASK_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_IN_PROGRESS, TASK_STATUS_COMPLETED)

# Tables observed by live queries
TABLE_TASKS = "tasks"
TABLE_DAILY_PROGRESS = "daily_progress"
TABLE_COMPLETION_LOGS = "task_completion_logs"
ENTITY_TABLES = (TABLE_TASKS, TABLE_DAILY_PROGRESS, TABLE_COMPLETION_LOGS)

# Logical name of the local store
DATABASE_NAME = "willard_db"

# Preference keys (stored in preferences.key)
PREF_IS_FIRST_LAUNCH = "is_first_launch"
PREF_HAS_SEEN_TUTORIAL = "has_seen_tutorial"
PREF_DEFAULT_TIMER_MINUTES = "default_timer_minutes"

# Preference defaults
DEFAULT_IS_FIRST_LAUNCH = True
DEFAULT_HAS_SEEN_TUTORIAL = False
DEFAULT_TIMER_MINUTES = 25
