# -*- coding: utf-8 -*-
"""Base DAO with shared database handle and helpers."""
from __future__ import annotations

from willard.domain.common.time import to_iso
from willard.domain.ports import Clock
from willard.infra.db.connection import Database


class BaseSqliteDao:
    """Base for sqlite DAOs: shared Database and _now_iso()."""

    def __init__(self, db: Database, clock: Clock) -> None:
        self._db = db
        self._clock = clock

    def _now_iso(self) -> str:
        return to_iso(self._clock.now())
