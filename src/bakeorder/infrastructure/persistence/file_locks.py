"""Keyed locks that also hold across processes sharing a data directory.

Every CLI command runs in its own process, so the in-process locks alone
would let two ``bakeorder order create`` runs book the same days.  Each
key additionally maps onto one of a fixed number of lock files.  Stripes
are taken in ascending order after all in-process keys are held, which
keeps the acquisition order global.
"""

from __future__ import annotations

import zlib
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock

from bakeorder.application.locking import KeyedLocks

DEFAULT_STRIPES = 16


class FileKeyedLocks(KeyedLocks):

    def __init__(self, lock_dir: Path, stripes: int = DEFAULT_STRIPES) -> None:
        super().__init__()
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        lock_dir.mkdir(parents=True, exist_ok=True)
        self._lock_dir = lock_dir
        self._stripes = stripes

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        with super().hold(*keys), ExitStack() as stack:
            for stripe in sorted({self.stripe_of(key) for key in keys}):
                stack.enter_context(FileLock(self._lock_dir / f"stripe-{stripe:02d}.lock"))
            yield

    def stripe_of(self, key: str) -> int:
        return zlib.crc32(key.encode("utf-8")) % self._stripes
