"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Hit/miss/reset counters owned by one cache instance.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from threading import Lock


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """Read-only copy of a cache instance's counters."""

    hit: int = 0
    miss: int = 0
    reset: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class CacheStats:
    """Monotonic counters mutated by the engine and the reset schedule."""

    def __init__(self) -> None:
        self._hit = 0
        self._miss = 0
        self._reset = 0
        self._lock = Lock()

    def record_hit(self) -> None:
        with self._lock:
            self._hit += 1

    def record_miss(self) -> None:
        with self._lock:
            self._miss += 1

    def record_reset(self) -> None:
        with self._lock:
            self._reset += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(hit=self._hit, miss=self._miss, reset=self._reset)
