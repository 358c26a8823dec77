"""Per-key lock interfaces and the in-process lock table."""

from __future__ import annotations

import abc
from typing import Protocol, Set


class AsyncLock(Protocol):
    async def __aenter__(self) -> bool: ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...


class LockManager(abc.ABC):
    @abc.abstractmethod
    def lock(self, key: str) -> AsyncLock:  # pragma: no cover - interface
        """Return an async context manager that attempts to acquire a lock."""
        raise NotImplementedError

    @abc.abstractmethod
    def is_held(self, key: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class _TableLock:
    def __init__(self, table: "LockTable", key: str) -> None:
        self._table = table
        self._key = key
        self._acquired = False

    async def __aenter__(self) -> bool:
        # check-and-set has no await in between, so it is atomic on the loop
        if self._key in self._table._held:
            return False
        self._table._held.add(self._key)
        self._acquired = True
        return True

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self._acquired:
            return
        self._table._held.discard(self._key)
        self._acquired = False


class LockTable(LockManager):
    """Non-blocking try-locks keyed by string; entries exist only while held.

    A contended acquire never waits: ``__aenter__`` returns ``False`` and the
    caller is expected to bail out.
    """

    def __init__(self) -> None:
        self._held: Set[str] = set()

    def lock(self, key: str) -> AsyncLock:
        return _TableLock(self, key)

    def is_held(self, key: str) -> bool:
        return key in self._held

    def __len__(self) -> int:
        return len(self._held)
