# willard/infra/db/invalidation.py
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Generic, Iterable, TypeVar

from willard.domain.common.observable import StateSubject, Subscription
from willard.domain.ports import LiveQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidationTracker:
    """
    Per-table change counters.

    Writers call `notify(table)` after commit; live queries subscribe to the
    counter of the table they read and re-run their query on every bump.
    """

    def __init__(self, tables: Iterable[str]) -> None:
        self._versions: Dict[str, StateSubject[int]] = {t: StateSubject(0) for t in tables}
        self._closed = False

    def notify(self, *tables: str) -> None:
        if self._closed:
            return
        for table in tables:
            subject = self._subject(table)
            subject.set(subject.value + 1)

    def subscribe(self, table: str) -> Subscription[int]:
        return self._subject(table).subscribe()

    def observer_count(self, table: str) -> int:
        return self._subject(table).subscriber_count

    def close(self) -> None:
        self._closed = True
        for subject in self._versions.values():
            subject.complete()

    def _subject(self, table: str) -> StateSubject[int]:
        try:
            return self._versions[table]
        except KeyError:
            raise ValueError(f"table is not tracked: {table}") from None


class QueryObservation(LiveQuery, Generic[T]):
    def __init__(self, versions: Subscription[int], fetch: Callable[[], Awaitable[T]]) -> None:
        self._versions = versions
        self._fetch = fetch

    def cancel(self) -> None:
        self._versions.cancel()

    async def __anext__(self) -> T:
        await self._versions.__anext__()
        try:
            return await self._fetch()
        except Exception:
            logger.error("Live query failed, cancelling observation", exc_info=True)
            self.cancel()
            raise
