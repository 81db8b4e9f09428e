from dataclasses import dataclass
import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from willard.constants import DATABASE_NAME

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    db_path: Path
    settings_path: Path
    timezone: str
    destructive_migration: bool
    log_level: int


def load_settings(env_file: str = ".env") -> Settings:
    load_dotenv(env_file)

    db_raw = os.getenv("WILLARD_DB_PATH", f"data/{DATABASE_NAME}.sqlite3").strip()
    settings_raw = os.getenv("WILLARD_SETTINGS_PATH", "data/settings.sqlite3").strip()
    tz = os.getenv("WILLARD_TZ", "UTC").strip()
    destructive_raw = os.getenv("WILLARD_DESTRUCTIVE_MIGRATION", "0").strip().lower()
    level_raw = os.getenv("WILLARD_LOG_LEVEL", "INFO").strip().upper()

    if not db_raw:
        raise RuntimeError("WILLARD_DB_PATH is empty")
    if not settings_raw:
        raise RuntimeError("WILLARD_SETTINGS_PATH is empty")
    if Path(db_raw) == Path(settings_raw):
        raise RuntimeError("WILLARD_SETTINGS_PATH must differ from WILLARD_DB_PATH")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise RuntimeError(f"WILLARD_TZ is not a known timezone: {tz!r}") from e
    if destructive_raw in _TRUE:
        destructive = True
    elif destructive_raw in _FALSE:
        destructive = False
    else:
        raise RuntimeError(f"WILLARD_DESTRUCTIVE_MIGRATION must be a boolean, got {destructive_raw!r}")
    level = logging.getLevelName(level_raw)
    if not isinstance(level, int):
        raise RuntimeError(f"WILLARD_LOG_LEVEL is not a logging level: {level_raw!r}")

    # paths stay relative here; the composition root resolves them
    return Settings(
        db_path=Path(db_raw),
        settings_path=Path(settings_raw),
        timezone=tz,
        destructive_migration=destructive,
        log_level=level,
    )
