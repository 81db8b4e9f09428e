# -*- coding: utf-8 -*-
"""Observable user preferences persisted in a PreferencesStore."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from willard.constants import (
    DEFAULT_HAS_SEEN_TUTORIAL,
    DEFAULT_IS_FIRST_LAUNCH,
    DEFAULT_TIMER_MINUTES,
    PREF_DEFAULT_TIMER_MINUTES,
    PREF_HAS_SEEN_TUTORIAL,
    PREF_IS_FIRST_LAUNCH,
)
from willard.domain.common.observable import Observable, StateSubject
from willard.domain.ports import SettingsRepository
from willard.domain.tasks.rules import validate_timer_minutes
from willard.infra.settings.preferences_sqlite import PreferencesStore

logger = logging.getLogger(__name__)


class SettingsRepositoryImpl(SettingsRepository):
    """
    Each write is persisted first and then emitted, so observers never see a
    value the store does not hold. Writes are serialized by a lock.
    """

    def __init__(self, store: PreferencesStore, initial: Dict[str, Any]) -> None:
        self._store = store
        self._lock = asyncio.Lock()
        self._first_launch = StateSubject(bool(initial.get(PREF_IS_FIRST_LAUNCH, DEFAULT_IS_FIRST_LAUNCH)))
        self._tutorial_seen = StateSubject(bool(initial.get(PREF_HAS_SEEN_TUTORIAL, DEFAULT_HAS_SEEN_TUTORIAL)))
        self._timer_minutes = StateSubject(_stored_minutes(initial.get(PREF_DEFAULT_TIMER_MINUTES)))

    @classmethod
    async def create(cls, store: PreferencesStore) -> "SettingsRepositoryImpl":
        return cls(store, await store.load_all())

    @property
    def is_first_launch(self) -> Observable[bool]:
        return self._first_launch

    @property
    def has_seen_tutorial(self) -> Observable[bool]:
        return self._tutorial_seen

    @property
    def default_timer_minutes(self) -> Observable[int]:
        return self._timer_minutes

    async def set_first_launch_completed(self) -> None:
        async with self._lock:
            await self._store.put(PREF_IS_FIRST_LAUNCH, False)
            self._first_launch.set(False)
        logger.info("First launch completed")

    async def set_tutorial_seen(self) -> None:
        async with self._lock:
            await self._store.put(PREF_HAS_SEEN_TUTORIAL, True)
            self._tutorial_seen.set(True)

    async def save_default_timer_minutes(self, minutes: int) -> None:
        validate_timer_minutes(minutes)
        async with self._lock:
            await self._store.put(PREF_DEFAULT_TIMER_MINUTES, minutes)
            self._timer_minutes.set(minutes)
        logger.debug("Default timer set to %s min", minutes)

    async def clear(self) -> None:
        async with self._lock:
            await self._store.clear()
            self._first_launch.set(DEFAULT_IS_FIRST_LAUNCH)
            self._tutorial_seen.set(DEFAULT_HAS_SEEN_TUTORIAL)
            self._timer_minutes.set(DEFAULT_TIMER_MINUTES)
        logger.info("Settings reset to defaults")

    def close(self) -> None:
        for subject in (self._first_launch, self._tutorial_seen, self._timer_minutes):
            subject.complete()
        self._store.close()


def _stored_minutes(raw: Any) -> int:
    # a corrupt or hand-edited value falls back to the default
    if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0:
        return raw
    if raw is not None:
        logger.warning("Ignoring invalid stored timer minutes %r, using %s", raw, DEFAULT_TIMER_MINUTES)
    return DEFAULT_TIMER_MINUTES
