"""Snowflake-style identifiers: time-ordered 63-bit integers.

Layout, high to low: 41 bits of milliseconds since ``EPOCH_MS``,
10 bits of worker id, 12 bits of per-millisecond sequence.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from bakeorder.application.ports import IdGenerator

EPOCH_MS = 1704067200000  # 2024-01-01T00:00:00Z

WORKER_BITS = 10
SEQUENCE_BITS = 12
MAX_WORKER = (1 << WORKER_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1


class SnowflakeIdGenerator(IdGenerator):

    def __init__(
        self,
        worker_id: int = 1,
        clock_ms: Callable[[], int] = lambda: time.time_ns() // 1_000_000,
    ) -> None:
        if not 0 <= worker_id <= MAX_WORKER:
            raise ValueError(f"worker_id must be between 0 and {MAX_WORKER}")
        self._worker_id = worker_id
        self._clock_ms = clock_ms
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def next_id(self) -> int:
        with self._lock:
            now = self._clock_ms()
            if now < self._last_ms:
                # clock moved backwards; keep ids increasing
                now = self._last_ms
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    now = self._wait_next_ms(self._last_ms)
            else:
                self._sequence = 0
            self._last_ms = now
            return (
                ((now - EPOCH_MS) << (WORKER_BITS + SEQUENCE_BITS))
                | (self._worker_id << SEQUENCE_BITS)
                | self._sequence
            )

    def _wait_next_ms(self, last_ms: int) -> int:
        now = self._clock_ms()
        while now <= last_ms:
            time.sleep(0.0001)
            now = self._clock_ms()
        return now
