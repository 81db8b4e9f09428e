"""
Environment configuration: defaults, .env loading and rejection of bad values.

Run with: python -m pytest tests/test_config.py -v
"""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from willard.config import load_settings

_VARS = (
    "WILLARD_DB_PATH",
    "WILLARD_SETTINGS_PATH",
    "WILLARD_TZ",
    "WILLARD_DESTRUCTIVE_MIGRATION",
    "WILLARD_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        # set-then-delete so that anything load_dotenv adds is undone after the test
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture()
def no_env_file(tmp_path) -> str:
    return str(tmp_path / "missing.env")


def test_defaults(no_env_file):
    settings = load_settings(no_env_file)
    assert settings.db_path == Path("data/willard_db.sqlite3")
    assert settings.settings_path == Path("data/settings.sqlite3")
    assert settings.timezone == "UTC"
    assert settings.destructive_migration is False
    assert settings.log_level == logging.INFO


def test_destructive_migration_must_be_opted_into(monkeypatch, no_env_file):
    monkeypatch.setenv("WILLARD_DESTRUCTIVE_MIGRATION", "yes")
    assert load_settings(no_env_file).destructive_migration is True
    monkeypatch.setenv("WILLARD_DESTRUCTIVE_MIGRATION", "0")
    assert load_settings(no_env_file).destructive_migration is False
    monkeypatch.setenv("WILLARD_DESTRUCTIVE_MIGRATION", "maybe")
    with pytest.raises(RuntimeError):
        load_settings(no_env_file)


def test_values_from_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("WILLARD_DB_PATH=/srv/willard/main.sqlite3\nWILLARD_LOG_LEVEL=debug\n")
    settings = load_settings(str(env_file))
    assert settings.db_path == Path("/srv/willard/main.sqlite3")
    assert settings.log_level == logging.DEBUG


@pytest.mark.parametrize(
    "name, value",
    [
        ("WILLARD_DB_PATH", "   "),
        ("WILLARD_SETTINGS_PATH", "data/willard_db.sqlite3"),
        ("WILLARD_TZ", "Mars/Olympus_Mons"),
        ("WILLARD_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, no_env_file, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        load_settings(no_env_file)
