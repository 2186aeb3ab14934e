"""In-process locks keyed by resource name.

Check-then-write sequences (calendar availability, active transaction
per account) must not interleave.  Each operation holds the keys of the
resources it reads and writes; keys are always acquired in sorted order
so two operations can never wait on each other.

A key's lock only lives while some caller holds or waits for it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

CALENDAR_KEY = "calendar"


def account_key(account_id: int) -> str:
    return f"account:{account_id}"


def purchase_key(purchase_id: int) -> str:
    return f"purchase:{purchase_id}"


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _KeyLock] = {}

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        held: list[str] = []
        try:
            for key in sorted(set(keys)):
                self._acquire(key)
                held.append(key)
            yield
        finally:
            for key in reversed(held):
                self._release(key)

    def _acquire(self, key: str) -> None:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _KeyLock()
            entry.users += 1
        entry.lock.acquire()

    def _release(self, key: str) -> None:
        with self._guard:
            entry = self._entries[key]
            entry.lock.release()
            entry.users -= 1
            if not entry.users:
                del self._entries[key]
