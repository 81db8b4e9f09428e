# -*- coding: utf-8 -*-
"""
Replay-latest observables.

A subject holds one current value. Every subscription first yields that value,
then yields again after each `set()`. Subscriptions are async iterators:

    async with repo.is_first_launch.subscribe() as values:
        async for value in values:
            ...

A slow subscriber is conflated to the latest value instead of buffering a
backlog. All of this lives on one asyncio event loop; nothing here is
thread-safe.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Generic, Set, TypeVar

T = TypeVar("T")


class Subscription(Generic[T]):
    def __init__(self, subject: "StateSubject[T]") -> None:
        self._subject = subject
        self._seen_version = -1
        self._wakeup = asyncio.Event()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop further emissions. A pending `__anext__` finishes the iteration."""
        if self._cancelled:
            return
        self._cancelled = True
        self._subject._detach(self)
        self._wakeup.set()

    async def aclose(self) -> None:
        self.cancel()

    def _notify(self) -> None:
        self._wakeup.set()

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        while True:
            if self._cancelled:
                raise StopAsyncIteration
            if self._seen_version != self._subject._version:
                self._seen_version = self._subject._version
                return self._subject._value
            self._wakeup.clear()
            await self._wakeup.wait()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class Observable(ABC, Generic[T]):
    """Read side of a subject, handed out to callers."""

    @property
    @abstractmethod
    def value(self) -> T: ...

    @abstractmethod
    def subscribe(self) -> Subscription[T]: ...


class StateSubject(Observable[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._version = 0
        self._subscribers: Set[Subscription[T]] = set()
        self._completed = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def set(self, value: T) -> None:
        if self._completed:
            raise RuntimeError("subject is completed")
        self._value = value
        self._version += 1
        for sub in list(self._subscribers):
            sub._notify()

    def subscribe(self) -> Subscription[T]:
        sub: Subscription[T] = Subscription(self)
        if self._completed:
            sub.cancel()
        else:
            self._subscribers.add(sub)
        return sub

    def complete(self) -> None:
        """End every live subscription; later subscriptions end immediately."""
        self._completed = True
        for sub in list(self._subscribers):
            sub.cancel()

    def _detach(self, sub: Subscription[T]) -> None:
        self._subscribers.discard(sub)

