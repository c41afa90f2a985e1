"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Lazy periodic reset schedule.
"""

from __future__ import annotations

from threading import Lock

from .settings import ResetOptions


class ResetSchedule:
    """
    Tracks when the next whole-cache reset is due.

    There is no background timer: callers check the schedule on every wrapped
    invocation. A due check fires once and advances by exactly one interval,
    so missed intervals are not replayed.
    """

    def __init__(self, options: ResetOptions, *, now: float) -> None:
        self.interval_s = options.interval_s
        if options.first_reset_at is not None:
            self._next_reset_at = options.first_reset_at
        else:
            self._next_reset_at = now + options.interval_s
        self._lock = Lock()

    @property
    def next_reset_at(self) -> float:
        with self._lock:
            return self._next_reset_at

    def check(self, now: float) -> bool:
        """Return True and advance the schedule when a reset is due at `now`."""
        with self._lock:
            if not self._next_reset_at < now:
                return False
            self._next_reset_at += self.interval_s
            return True
