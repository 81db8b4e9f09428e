# tests/fakes.py

from __future__ import annotations

from datetime import datetime, timedelta

from willard.constants import DEFAULT_HAS_SEEN_TUTORIAL, DEFAULT_IS_FIRST_LAUNCH, DEFAULT_TIMER_MINUTES
from willard.domain.common.observable import Observable, StateSubject
from willard.domain.ports import Clock, SettingsRepository
from willard.domain.tasks.rules import validate_timer_minutes


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> None:
        self._now = self._now + timedelta(**kwargs)


class FakeSettingsRepository(SettingsRepository):
    """
    In-memory SettingsRepository for unit tests.

    Same defaults, validation and emission behaviour as SettingsRepositoryImpl;
    only persistence is missing.
    """

    def __init__(self) -> None:
        self.is_first_launch_subject = StateSubject(DEFAULT_IS_FIRST_LAUNCH)
        self.has_seen_tutorial_subject = StateSubject(DEFAULT_HAS_SEEN_TUTORIAL)
        self.default_timer_minutes_subject = StateSubject(DEFAULT_TIMER_MINUTES)

    @property
    def is_first_launch(self) -> Observable[bool]:
        return self.is_first_launch_subject

    @property
    def has_seen_tutorial(self) -> Observable[bool]:
        return self.has_seen_tutorial_subject

    @property
    def default_timer_minutes(self) -> Observable[int]:
        return self.default_timer_minutes_subject

    async def set_first_launch_completed(self) -> None:
        self.is_first_launch_subject.set(False)

    async def set_tutorial_seen(self) -> None:
        self.has_seen_tutorial_subject.set(True)

    async def save_default_timer_minutes(self, minutes: int) -> None:
        validate_timer_minutes(minutes)
        self.default_timer_minutes_subject.set(minutes)

    async def clear(self) -> None:
        self.is_first_launch_subject.set(DEFAULT_IS_FIRST_LAUNCH)
        self.has_seen_tutorial_subject.set(DEFAULT_HAS_SEEN_TUTORIAL)
        self.default_timer_minutes_subject.set(DEFAULT_TIMER_MINUTES)

    def close(self) -> None:
        self.is_first_launch_subject.complete()
        self.has_seen_tutorial_subject.complete()
        self.default_timer_minutes_subject.complete()
