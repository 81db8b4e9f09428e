# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from .fakes import FixedClock


@pytest.fixture()
def clock() -> FixedClock:
    """Monday 2025-03-10 09:00 UTC; tests advance it explicitly."""
    return FixedClock(datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "willard_db.sqlite3"


@pytest.fixture()
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.sqlite3"
