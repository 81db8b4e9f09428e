"""
Composition root: builds the gateway, DAOs, settings repository and task
service once per process and hands them out by reference.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from willard.config import Settings, load_settings
from willard.domain.ports import Clock
from willard.domain.tasks.service import TaskService
from willard.infra.clock.system_clock import SystemClock
from willard.infra.db.gateway import AppDatabase
from willard.infra.settings.preferences_sqlite import PreferencesStore
from willard.infra.settings.settings_repo import SettingsRepositoryImpl

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    )


@dataclass
class AppContainer:
    database: AppDatabase
    settings_repo: SettingsRepositoryImpl
    task_service: TaskService
    clock: Clock

    async def aclose(self) -> None:
        self.settings_repo.close()
        await self.database.close()

    async def __aenter__(self) -> "AppContainer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _resolve(path: Path, base_dir: Optional[Path]) -> Path:
    if path.is_absolute() or base_dir is None:
        return path
    return base_dir / path


async def build_app(
    settings: Settings,
    base_dir: Optional[Path] = None,
    clock: Optional[Clock] = None,
) -> AppContainer:
    clock = clock or SystemClock(settings.timezone)

    database = await AppDatabase.open(
        _resolve(settings.db_path, base_dir),
        destructive_migration=settings.destructive_migration,
        clock=clock,
    )
    try:
        store = await PreferencesStore.open(_resolve(settings.settings_path, base_dir), clock)
        settings_repo = await SettingsRepositoryImpl.create(store)
    except BaseException:
        await database.close()
        raise

    task_service = TaskService(
        tasks=database.task_dao(),
        progress=database.daily_progress_dao(),
        logs=database.completion_log_dao(),
        clock=clock,
    )
    return AppContainer(
        database=database,
        settings_repo=settings_repo,
        task_service=task_service,
        clock=clock,
    )


async def main() -> None:
    """Open the stores, run the start-of-day housekeeping and exit."""
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("Willard store starting - PID: %s", os.getpid())
    if settings.destructive_migration:
        logger.warning("Destructive migration is ENABLED: incompatible stores will be wiped")

    async with await build_app(settings, base_dir=Path.cwd()) as app:
        reset = await app.task_service.refresh_recurring_tasks()
        progress = await app.task_service.refresh_daily_progress()
        streak = await app.task_service.calculate_current_streak()
        logger.info(
            "Housekeeping done: reset=%s today=%s/%s streak=%s",
            reset,
            progress.tasks_completed_count,
            progress.tasks_total_count,
            streak,
        )


if __name__ == "__main__":
    asyncio.run(main())
